# ==============================================
# Exceptions
# ==============================================
#
# MetadataMappingError
# ├── ConfigurationError            → required property absent / unresolvable
# ├── ValidationError               → invalid entity or uniqueness violation
# └── InvalidMetadataTypeException  → referred item has the wrong type
#
# Lookups that find nothing return None instead of raising.
# ==============================================


class MetadataMappingError(Exception):
    """Base class for all errors raised by the metadata mapping service."""


class ConfigurationError(MetadataMappingError):
    pass


class ValidationError(MetadataMappingError):
    pass


class InvalidMetadataTypeException(MetadataMappingError):
    pass
