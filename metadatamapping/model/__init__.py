# ==============================================
# MODEL: metadata sources, term mappings, sets
# ==============================================
#
# Modules:
# --------
# - metadata.py  → Entities persisted by the service, the tagged
#                  MetadataReference and RetiredHandlingMode
#
# ==============================================

from .metadata import (
    BaseMetadata,
    MetadataReference,
    MetadataSet,
    MetadataSetMember,
    MetadataSource,
    MetadataTermMapping,
    RetiredHandlingMode,
)

__all__ = [
    "BaseMetadata",
    "MetadataReference",
    "MetadataSet",
    "MetadataSetMember",
    "MetadataSource",
    "MetadataTermMapping",
    "RetiredHandlingMode",
]
