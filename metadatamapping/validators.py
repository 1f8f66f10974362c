# ==============================================
# Entity validation before save
# ==============================================
#
# Each validator raises ValidationError on the first problem.
# Code uniqueness is checked against stored rows here; the
# storage constraints catch saves that race past the check.
# ==============================================

from metadatamapping.exceptions import ValidationError
from metadatamapping.model import (
    MetadataSet,
    MetadataSetMember,
    MetadataSource,
    MetadataTermMapping,
)


def _require_saved(owner: str, attribute: str, value) -> None:
    if value is None:
        raise ValidationError(f"{owner}.{attribute} is required")
    if value.id is None:
        raise ValidationError(f"{owner}.{attribute} must be saved first")


def _check_unique_code(dao, entity) -> None:
    existing = dao.find(
        type(entity), {"metadata_source": entity.metadata_source, "code": entity.code}
    )
    if any(other.uuid != entity.uuid for other in existing):
        raise ValidationError(
            f"{type(entity).__name__} code '{entity.code}' already exists in "
            f"source '{entity.metadata_source.name}'"
        )


def validate_metadata_source(dao, source: MetadataSource) -> None:
    if not source.name or not source.name.strip():
        raise ValidationError("MetadataSource.name is required")
    existing = dao.get_by_property(MetadataSource, "name", source.name)
    if existing is not None and existing.uuid != source.uuid:
        raise ValidationError(f"MetadataSource '{source.name}' already exists")


def validate_metadata_term_mapping(dao, mapping: MetadataTermMapping) -> None:
    _require_saved("MetadataTermMapping", "metadata_source", mapping.metadata_source)
    if not mapping.code or not mapping.code.strip():
        raise ValidationError("MetadataTermMapping.code is required")
    if mapping.metadata_class and not mapping.metadata_uuid:
        raise ValidationError("MetadataTermMapping.metadata_uuid is required with metadata_class")
    _check_unique_code(dao, mapping)


def validate_metadata_set(dao, metadata_set: MetadataSet) -> None:
    # Source is optional, but a given one must be stored; a code needs a source
    if metadata_set.metadata_source is not None or metadata_set.code is not None:
        _require_saved("MetadataSet", "metadata_source", metadata_set.metadata_source)
    if metadata_set.code is not None:
        _check_unique_code(dao, metadata_set)


def validate_metadata_set_member(member: MetadataSetMember) -> None:
    _require_saved("MetadataSetMember", "metadata_set", member.metadata_set)
    if not member.metadata_class or not member.metadata_uuid:
        raise ValidationError("MetadataSetMember must refer to a metadata item")
