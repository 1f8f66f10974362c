# ==============================================
# Metadata entities
# ==============================================
#
# ENUMS:
# ------
# - RetiredHandlingMode: ONLY_ACTIVE, INCLUDE_RETIRED, ONLY_RETIRED
#     How list queries treat retired rows.
#
# CLASSES:
# --------
# - MetadataReference (frozen dataclass)
#     Tagged pointer to any metadata item: (class name, uuid).
#
# - BaseMetadata (dataclass)
#     Fields shared by every entity (id, uuid, name, retire info...).
#     Equality is by uuid, so two copies loaded separately compare equal.
#
#     Methods:
#     --------
#     - to_dict() -> dict                 → Row for the storage clients
#     - from_dict(data) (classmethod)     → Entity from a stored row
#
#     References to other entities (REFERENCES) are written as
#     "<attribute>_id" columns and re-attached by the DAO on load.
#
# - MetadataSource, MetadataTermMapping, MetadataSet, MetadataSetMember
#
# ==============================================

import uuid as uuid_module
from dataclasses import dataclass, field, fields
from datetime import datetime
from enum import Enum
from typing import Any, ClassVar, Dict, Optional


class RetiredHandlingMode(Enum):
    """
    Enumeration of the ways list queries handle retired rows.

    - ONLY_ACTIVE: skip retired rows
    - INCLUDE_RETIRED: return retired and unretired rows
    - ONLY_RETIRED: return retired rows only
    """
    ONLY_ACTIVE = "only_active"
    INCLUDE_RETIRED = "include_retired"
    ONLY_RETIRED = "only_retired"


@dataclass(frozen=True)
class MetadataReference:
    """Points at a metadata item of any type by class name and uuid."""
    metadata_class: str
    metadata_uuid: str

    @classmethod
    def of(cls, item: Any) -> "MetadataReference":
        return cls(metadata_class=type(item).__name__, metadata_uuid=item.uuid)


def _new_uuid() -> str:
    return str(uuid_module.uuid4())


@dataclass(eq=False)
class BaseMetadata:
    TABLE: ClassVar[str] = ""
    REFERENCES: ClassVar[Dict[str, type]] = {}

    name: Optional[str] = None
    description: Optional[str] = None
    id: Optional[int] = None
    uuid: str = field(default_factory=_new_uuid)
    retired: bool = False
    retired_by: Optional[str] = None
    date_retired: Optional[datetime] = None
    retire_reason: Optional[str] = None
    date_created: Optional[datetime] = None

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BaseMetadata):
            return NotImplemented
        return type(self) is type(other) and self.uuid == other.uuid

    def __hash__(self) -> int:
        return hash((type(self).__name__, self.uuid))

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert to a flat row for the storage clients.

        Returns:
            Column name -> value, with references written as ids
        """
        row: Dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if f.name in self.REFERENCES:
                row[f"{f.name}_id"] = value.id if value is not None else None
            else:
                row[f.name] = value
        return row

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BaseMetadata":
        """
        Create from a stored row. Reference attributes are left as None.

        Args:
            data: Row as returned by a storage client

        Returns:
            Entity instance
        """
        kwargs = {
            f.name: data[f.name]
            for f in fields(cls)
            if f.name not in cls.REFERENCES and f.name in data
        }
        # MySQL hands booleans back as 0/1
        kwargs["retired"] = bool(kwargs.get("retired", False))
        return cls(**kwargs)


@dataclass(eq=False)
class MetadataSource(BaseMetadata):
    """Named container of term mappings and sets."""
    TABLE: ClassVar[str] = "metadatamapping_metadata_source"


@dataclass(eq=False)
class MetadataTermMapping(BaseMetadata):
    """Maps a code within a source to a referred metadata item."""
    TABLE: ClassVar[str] = "metadatamapping_metadata_term_mapping"
    REFERENCES: ClassVar[Dict[str, type]] = {"metadata_source": MetadataSource}

    metadata_source: Optional[MetadataSource] = None
    code: Optional[str] = None
    metadata_class: Optional[str] = None
    metadata_uuid: Optional[str] = None

    def set_mapped_object(self, item: Any) -> None:
        reference = MetadataReference.of(item)
        self.metadata_class = reference.metadata_class
        self.metadata_uuid = reference.metadata_uuid

    @property
    def reference(self) -> Optional[MetadataReference]:
        if self.metadata_class is None or self.metadata_uuid is None:
            return None
        return MetadataReference(self.metadata_class, self.metadata_uuid)


@dataclass(eq=False)
class MetadataSet(BaseMetadata):
    """Named, coded grouping of metadata items."""
    TABLE: ClassVar[str] = "metadatamapping_metadata_set"
    REFERENCES: ClassVar[Dict[str, type]] = {"metadata_source": MetadataSource}

    metadata_source: Optional[MetadataSource] = None
    code: Optional[str] = None


@dataclass(eq=False)
class MetadataSetMember(BaseMetadata):
    """
    One item of a metadata set.

    Members are listed by ascending sort_weight. The relative order of
    members without a weight is left to the storage backend.
    """
    TABLE: ClassVar[str] = "metadatamapping_metadata_set_member"
    REFERENCES: ClassVar[Dict[str, type]] = {"metadata_set": MetadataSet}

    metadata_set: Optional[MetadataSet] = None
    metadata_class: Optional[str] = None
    metadata_uuid: Optional[str] = None
    sort_weight: Optional[float] = None

    def set_mapped_object(self, item: Any) -> None:
        reference = MetadataReference.of(item)
        self.metadata_class = reference.metadata_class
        self.metadata_uuid = reference.metadata_uuid

    @property
    def reference(self) -> Optional[MetadataReference]:
        if self.metadata_class is None or self.metadata_uuid is None:
            return None
        return MetadataReference(self.metadata_class, self.metadata_uuid)
