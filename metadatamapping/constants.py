# ==============================================
# Property keys and naming constants
# ==============================================

MODULE_ID = "metadatamapping"

# Global property holding the platform's implementation identifier
GP_IMPLEMENTATION_ID = "implementation_id"

GP_LOCAL_SOURCE_UUID = MODULE_ID + ".localConceptSourceUuid"
GP_ADD_LOCAL_MAPPINGS = MODULE_ID + ".addLocalMappings"
GP_SUBSCRIBED_SOURCES = MODULE_ID + ".subscribedConceptSources"

SUBSCRIBED_SOURCES_SEPARATOR = ","

LOCAL_SOURCE_NAME_POSTFIX = "-dict"
LOCAL_SOURCE_DESCRIPTION = "Local concept source"
