# ==============================================
# MetadataMappingService facade
# ==============================================
#
# PURPOSE:
#   Single entry point for metadata term mapping, metadata sets
#   and local concept dictionary bookkeeping. Callers never touch
#   the DAO, the property store or the concept adapter directly.
#
#   ┌──────────────────────────────────────────────────────────┐
#   │                 MetadataMappingService                   │
#   │                                                          │
#   │   MetadataMappingDao ──► MySQLClient | MongoClient       │
#   │   ConceptAdapter     ──► host concept dictionary         │
#   │   PropertyStore      ──► global_properties.json          │
#   │   MetadataTypeRegistry ─► loaders for referred items     │
#   └──────────────────────────────────────────────────────────┘
#
# GROUPS OF OPERATIONS:
# ---------------------
#   1. Local source management
#   2. Local mapping maintenance on concepts
#   3. Subscribed-source registry
#   4. Concept resolution
#   5. Metadata source / term mapping / set / set member CRUD
#   6. Referred-object and set-item resolution
#
#   Every save / retire / local-mapping / subscription call writes
#   through immediately; everything else is read-only. Batch calls
#   stop at the first error, leaving earlier writes in place.
#
# ==============================================

import re
from typing import Any, Iterable, List, Optional, Set, Type, TypeVar, Union

from metadatamapping import constants
from metadatamapping.audit import stamp_retired
from metadatamapping.concept_adapter import ConceptAdapter
from metadatamapping.exceptions import ConfigurationError, InvalidMetadataTypeException
from metadatamapping.model import (
    BaseMetadata,
    MetadataSet,
    MetadataSetMember,
    MetadataSource,
    MetadataTermMapping,
    RetiredHandlingMode,
)
from metadatamapping.persistence import MetadataMappingDao, PropertyStore
from metadatamapping.registry import MetadataTypeRegistry
from metadatamapping.validators import (
    validate_metadata_set,
    validate_metadata_set_member,
    validate_metadata_source,
    validate_metadata_term_mapping,
)

T = TypeVar("T")
E = TypeVar("E", bound=BaseMetadata)

_SOURCE_CODE_PATTERN = re.compile(r"^\s*([^:]+?)\s*:\s*([^:]+?)\s*$")


class MetadataMappingService:
    """
    Facade over metadata term mappings, metadata sets and the local
    concept dictionary.
    """

    def __init__(
        self,
        dao: MetadataMappingDao,
        concept_adapter: ConceptAdapter,
        properties: PropertyStore,
        registry: Optional[MetadataTypeRegistry] = None,
        audit_user: str = "daemon"
    ):
        """
        Args:
            dao: Entity persistence
            concept_adapter: Host concept dictionary
            properties: Global property store
            registry: Loaders for referred metadata items. The service's own
                entity types are registered on it.
            audit_user: Recorded as retired_by when retiring
        """
        self._dao = dao
        self._concepts = concept_adapter
        self._properties = properties
        self._audit_user = audit_user
        self.registry = registry or MetadataTypeRegistry()
        for entity_type in (MetadataSource, MetadataTermMapping, MetadataSet, MetadataSetMember):
            self.registry.register(entity_type, self._loader(entity_type))

    def _loader(self, entity_type):
        return lambda uuid: self._dao.get_by_uuid(entity_type, uuid)

    # ==========================================
    # 1. Local source management
    # ==========================================

    def create_local_source_from_implementation_id(self):
        """
        Create (or reuse) the concept source named '<implementation id>-dict'
        and make it the local source.

        Returns:
            The local concept source

        Raises:
            ConfigurationError: the implementation id is not set
        """
        implementation_id = self._properties.get_value(constants.GP_IMPLEMENTATION_ID)
        if implementation_id is None:
            raise ConfigurationError(
                f"Implementation id must be set in the '{constants.GP_IMPLEMENTATION_ID}' property"
            )
        source_name = implementation_id.strip() + constants.LOCAL_SOURCE_NAME_POSTFIX

        source = self._concepts.get_concept_source_by_name(source_name)
        if source is None:
            source = self._concepts.create_concept_source(
                source_name, constants.LOCAL_SOURCE_DESCRIPTION
            )
        self.set_local_concept_source(source)
        return source

    def get_local_source(self):
        """
        Raises:
            ConfigurationError: the local source property is unset or
                does not resolve to a concept source
        """
        source_uuid = self._properties.get_value(constants.GP_LOCAL_SOURCE_UUID)
        if source_uuid is None:
            raise ConfigurationError(
                f"Local concept source must be set in the '{constants.GP_LOCAL_SOURCE_UUID}' property"
            )
        source = self._concepts.get_concept_source_by_uuid(source_uuid.strip())
        if source is None:
            raise ConfigurationError(
                f"Local concept source with uuid '{source_uuid}' does not exist"
            )
        return source

    def is_local_source_configured(self) -> bool:
        try:
            self.get_local_source()
        except ConfigurationError:
            return False
        return True

    def set_local_concept_source(self, concept_source) -> None:
        self._properties.set_value(constants.GP_LOCAL_SOURCE_UUID, concept_source.uuid)

    def is_add_local_mapping_on_export(self) -> bool:
        value = self._properties.get_value(constants.GP_ADD_LOCAL_MAPPINGS)
        return value is not None and value.strip().lower() == "true"

    def set_add_local_mapping_on_export(self, add_local_mappings: bool) -> None:
        self._properties.set_value(
            constants.GP_ADD_LOCAL_MAPPINGS, "true" if add_local_mappings else "false"
        )

    # ==========================================
    # 2. Local mapping maintenance on concepts
    # ==========================================

    def add_local_mapping_to_concept(self, concept) -> None:
        """
        Add a 'local source:concept id' mapping unless the concept already
        maps to the local source, then save the concept.

        Raises:
            ConfigurationError: no local source is configured
        """
        local_source = self.get_local_source()
        if self._concepts.get_mapping(concept, local_source) is not None:
            return
        self._concepts.add_mapping(concept, local_source, str(concept.concept_id))
        self._concepts.save_concept(concept)

    def add_local_mapping_to_all_concepts(self) -> None:
        for concept in self._concepts.get_all_concepts():
            self.add_local_mapping_to_concept(concept)

    def purge_local_mapping_in_concept(self, concept) -> None:
        mapping = self._concepts.get_mapping(concept, self.get_local_source())
        if mapping is not None:
            self._concepts.remove_mapping(concept, mapping)
            self._concepts.save_concept(concept)

    def mark_local_mapping_retired_in_concept(self, concept) -> None:
        mapping = self._concepts.get_mapping(concept, self.get_local_source())
        if mapping is not None:
            self._concepts.retire_mapping(concept, mapping)
            self._concepts.save_concept(concept)

    def mark_local_mapping_unretired_in_concept(self, concept) -> None:
        mapping = self._concepts.get_mapping(concept, self.get_local_source())
        if mapping is not None:
            self._concepts.unretire_mapping(concept, mapping)
            self._concepts.save_concept(concept)

    # ==========================================
    # 3. Subscribed-source registry
    # ==========================================

    def _subscribed_source_uuids(self) -> List[str]:
        value = self._properties.get_value(constants.GP_SUBSCRIBED_SOURCES)
        if value is None:
            return []
        return [
            uuid.strip()
            for uuid in value.split(constants.SUBSCRIBED_SOURCES_SEPARATOR)
            if uuid.strip()
        ]

    def _set_subscribed_source_uuids(self, uuids: List[str]) -> None:
        self._properties.set_value(
            constants.GP_SUBSCRIBED_SOURCES,
            constants.SUBSCRIBED_SOURCES_SEPARATOR.join(uuids) if uuids else None,
        )

    def get_subscribed_sources(self) -> Set[Any]:
        """
        Returns:
            The subscribed concept sources; empty if none are set.
            Stored uuids that no longer resolve are left out.
        """
        sources = set()
        for uuid in self._subscribed_source_uuids():
            source = self._concepts.get_concept_source_by_uuid(uuid)
            if source is not None:
                sources.add(source)
        return sources

    def add_subscribed_source(self, concept_source) -> bool:
        uuids = self._subscribed_source_uuids()
        if concept_source.uuid in uuids:
            return False
        uuids.append(concept_source.uuid)
        self._set_subscribed_source_uuids(uuids)
        return True

    def remove_subscribed_source(self, concept_source) -> bool:
        uuids = self._subscribed_source_uuids()
        if concept_source.uuid not in uuids:
            return False
        uuids.remove(concept_source.uuid)
        self._set_subscribed_source_uuids(uuids)
        return True

    def is_local_concept(self, concept) -> bool:
        """A concept is local if none of its mappings is to a subscribed source."""
        subscribed = set(self._subscribed_source_uuids())
        return not any(
            source.uuid in subscribed for source in self._concepts.get_mapping_sources(concept)
        )

    # ==========================================
    # 4. Concept resolution
    # ==========================================

    def get_concept(self, mapping: Union[str, int, None]):
        """
        Find a concept by 'source:code' mapping or by concept id.

        Args:
            mapping: 'source:code', a concept id, or a concept id as a string

        Returns:
            The concept, or None if nothing matches. A non-retired concept is
            preferred over a retired one sharing the same mapping.
        """
        if mapping is None:
            return None
        if isinstance(mapping, int):
            return self._concepts.get_concept(mapping)

        match = _SOURCE_CODE_PATTERN.match(mapping)
        if match:
            source_name, code = match.groups()
            concepts = self._concepts.get_concepts_by_mapping(code, source_name)
            for concept in concepts:
                if not concept.retired:
                    return concept
            return concepts[0] if concepts else None

        try:
            concept_id = int(mapping.strip())
        except ValueError:
            return None
        return self._concepts.get_concept(concept_id)

    # ==========================================
    # 5. CRUD
    # ==========================================

    def _retire(self, entity: E, reason: str) -> E:
        stamp_retired(entity, reason, self._audit_user)
        return self._dao.save(entity)

    # --- metadata sources ---

    def save_metadata_source(self, metadata_source: MetadataSource) -> MetadataSource:
        validate_metadata_source(self._dao, metadata_source)
        return self._dao.save(metadata_source)

    def get_metadata_source(self, metadata_source_id: int) -> Optional[MetadataSource]:
        return self._dao.get_by_id(MetadataSource, metadata_source_id)

    def get_metadata_source_by_uuid(self, metadata_source_uuid: str) -> Optional[MetadataSource]:
        return self._dao.get_by_uuid(MetadataSource, metadata_source_uuid)

    def get_metadata_source_by_name(self, metadata_source_name: str) -> Optional[MetadataSource]:
        return self._dao.get_by_property(MetadataSource, "name", metadata_source_name)

    def get_metadata_sources(self, include_retired: bool = False) -> List[MetadataSource]:
        criteria = {} if include_retired else {"retired": False}
        return self._dao.find(MetadataSource, criteria, [("name", True)])

    def retire_metadata_source(self, metadata_source: MetadataSource, reason: str) -> MetadataSource:
        return self._retire(metadata_source, reason)

    # --- metadata term mappings ---

    def save_metadata_term_mapping(self, metadata_term_mapping: MetadataTermMapping) -> MetadataTermMapping:
        """
        Raises:
            ValidationError: missing source or code, or the code is already
                used in the source
        """
        validate_metadata_term_mapping(self._dao, metadata_term_mapping)
        return self._dao.save(metadata_term_mapping)

    def save_metadata_term_mappings(
        self, metadata_term_mappings: Iterable[MetadataTermMapping]
    ) -> List[MetadataTermMapping]:
        return [self.save_metadata_term_mapping(mapping) for mapping in metadata_term_mappings]

    def get_metadata_term_mapping(self, metadata_term_mapping_id: int) -> Optional[MetadataTermMapping]:
        return self._dao.get_by_id(MetadataTermMapping, metadata_term_mapping_id)

    def get_metadata_term_mapping_by_uuid(self, metadata_term_mapping_uuid: str) -> Optional[MetadataTermMapping]:
        return self._dao.get_by_uuid(MetadataTermMapping, metadata_term_mapping_uuid)

    def get_metadata_term_mapping_by_code(
        self, metadata_source: MetadataSource, metadata_term_code: str
    ) -> Optional[MetadataTermMapping]:
        """Look up a term mapping by source and code, retired or not."""
        mappings = self._dao.find(
            MetadataTermMapping,
            {"metadata_source": metadata_source, "code": metadata_term_code},
            max_results=1,
        )
        return mappings[0] if mappings else None

    def get_metadata_term_mappings(self, metadata_source: MetadataSource) -> List[MetadataTermMapping]:
        return self._dao.find(
            MetadataTermMapping, {"metadata_source": metadata_source, "retired": False}
        )

    def get_metadata_term_mappings_referring_to(self, referred_object: Any) -> List[MetadataTermMapping]:
        return self._dao.find(
            MetadataTermMapping,
            {
                "metadata_class": self.registry.tag_for(referred_object),
                "metadata_uuid": referred_object.uuid,
                "retired": False,
            },
        )

    def retire_metadata_term_mapping(
        self, metadata_term_mapping: MetadataTermMapping, reason: str
    ) -> MetadataTermMapping:
        return self._retire(metadata_term_mapping, reason)

    # --- metadata sets ---

    def save_metadata_set(self, metadata_set: MetadataSet) -> MetadataSet:
        validate_metadata_set(self._dao, metadata_set)
        return self._dao.save(metadata_set)

    def get_metadata_set(self, metadata_set_id: int) -> Optional[MetadataSet]:
        return self._dao.get_by_id(MetadataSet, metadata_set_id)

    def get_metadata_set_by_uuid(self, metadata_set_uuid: str) -> Optional[MetadataSet]:
        return self._dao.get_by_uuid(MetadataSet, metadata_set_uuid)

    def get_metadata_set_by_code(
        self, metadata_source: MetadataSource, metadata_set_code: str
    ) -> Optional[MetadataSet]:
        sets = self._dao.find(
            MetadataSet,
            {"metadata_source": metadata_source, "code": metadata_set_code},
            max_results=1,
        )
        return sets[0] if sets else None

    def retire_metadata_set(self, metadata_set: MetadataSet, reason: str) -> MetadataSet:
        """Retire the set and every member of it that is not yet retired."""
        self._retire(metadata_set, reason)
        for member in self._dao.find(MetadataSetMember, {"metadata_set": metadata_set, "retired": False}):
            self._retire(member, reason)
        return metadata_set

    # --- metadata set members ---

    def save_metadata_set_member(self, metadata_set_member: MetadataSetMember) -> MetadataSetMember:
        validate_metadata_set_member(metadata_set_member)
        return self._dao.save(metadata_set_member)

    def save_metadata_set_members(
        self, metadata_set_members: Iterable[MetadataSetMember]
    ) -> List[MetadataSetMember]:
        return [self.save_metadata_set_member(member) for member in metadata_set_members]

    def get_metadata_set_member(self, metadata_set_member_id: int) -> Optional[MetadataSetMember]:
        return self._dao.get_by_id(MetadataSetMember, metadata_set_member_id)

    def get_metadata_set_member_by_uuid(self, metadata_set_member_uuid: str) -> Optional[MetadataSetMember]:
        return self._dao.get_by_uuid(MetadataSetMember, metadata_set_member_uuid)

    def retire_metadata_set_member(
        self, metadata_set_member: MetadataSetMember, reason: str
    ) -> MetadataSetMember:
        return self._retire(metadata_set_member, reason)

    # ==========================================
    # 6. Referred-object and set-item resolution
    # ==========================================

    def _set_by_code(self, metadata_source_name: str, metadata_set_code: str) -> Optional[MetadataSet]:
        source = self.get_metadata_source_by_name(metadata_source_name)
        if source is None:
            return None
        return self.get_metadata_set_by_code(source, metadata_set_code)

    def get_metadata_item(self, metadata_type: Type[T], metadata_source_name: str, metadata_term_code: str) -> Optional[T]:
        """
        Get the item a term mapping refers to.

        Args:
            metadata_type: Expected type of the item
            metadata_source_name: Name of the metadata source
            metadata_term_code: Code of the term mapping in that source

        Returns:
            The item, or None if the source, the mapping or the item does not
            exist, or if the mapping or the item is retired

        Raises:
            InvalidMetadataTypeException: the item is not a metadata_type
        """
        source = self.get_metadata_source_by_name(metadata_source_name)
        if source is None:
            return None
        mapping = self.get_metadata_term_mapping_by_code(source, metadata_term_code)
        if mapping is None or mapping.retired or mapping.reference is None:
            return None

        item = self.registry.resolve(mapping.reference)
        if item is None:
            return None
        if not isinstance(item, metadata_type):
            raise InvalidMetadataTypeException(
                f"Term '{metadata_term_code}' in source '{metadata_source_name}' refers to "
                f"{mapping.metadata_class}, not {metadata_type.__name__}"
            )
        if getattr(item, "retired", False):
            return None
        return item

    def get_metadata_items(self, metadata_type: Type[T], metadata_source_name: str) -> List[T]:
        source = self.get_metadata_source_by_name(metadata_source_name)
        if source is None:
            return []
        mappings = self._dao.find(
            MetadataTermMapping,
            {
                "metadata_source": source,
                "metadata_class": self.registry.tag_for(metadata_type),
                "retired": False,
            },
        )
        return self._resolve_active(metadata_type, mappings)

    def _resolve_active(self, metadata_type: Type[T], referrers) -> List[T]:
        # Referrers are term mappings or set members; keep their order
        items = []
        for referrer in referrers:
            item = self.registry.resolve(referrer.reference)
            if isinstance(item, metadata_type) and not getattr(item, "retired", False):
                items.append(item)
        return items

    def get_metadata_set_members(
        self,
        metadata_set: Optional[MetadataSet],
        first_result: int = 0,
        max_results: Optional[int] = None,
        retired_handling_mode: RetiredHandlingMode = RetiredHandlingMode.ONLY_ACTIVE
    ) -> List[MetadataSetMember]:
        """
        Get members of a set in ascending sort_weight order.

        The relative order of members without a sort_weight depends on the
        storage backend.

        Args:
            metadata_set: The set; None gives an empty list
            first_result: Zero based index of the first member
            max_results: Maximum number of members, None for all
            retired_handling_mode: Which members to include

        Returns:
            List of members
        """
        if metadata_set is None:
            return []
        criteria = {"metadata_set": metadata_set}
        if retired_handling_mode is RetiredHandlingMode.ONLY_ACTIVE:
            criteria["retired"] = False
        elif retired_handling_mode is RetiredHandlingMode.ONLY_RETIRED:
            criteria["retired"] = True
        return self._dao.find(
            MetadataSetMember, criteria, [("sort_weight", True)], first_result, max_results
        )

    def get_metadata_set_members_by_code(
        self,
        metadata_source_name: str,
        metadata_set_code: str,
        first_result: int = 0,
        max_results: Optional[int] = None,
        retired_handling_mode: RetiredHandlingMode = RetiredHandlingMode.ONLY_ACTIVE
    ) -> List[MetadataSetMember]:
        return self.get_metadata_set_members(
            self._set_by_code(metadata_source_name, metadata_set_code),
            first_result,
            max_results,
            retired_handling_mode,
        )

    def get_metadata_set_items(
        self,
        metadata_type: Type[T],
        metadata_set: Optional[MetadataSet],
        first_result: int = 0,
        max_results: Optional[int] = None
    ) -> List[T]:
        """
        Get the unretired metadata_type items of the set's unretired members,
        in member order. Pagination applies to the items, after filtering.
        """
        if metadata_set is None:
            return []
        tag = self.registry.tag_for(metadata_type)
        members = [
            member for member in self.get_metadata_set_members(metadata_set)
            if member.metadata_class == tag
        ]
        items = self._resolve_active(metadata_type, members)
        if max_results is None:
            return items[first_result:]
        return items[first_result:first_result + max_results]

    def get_metadata_set_items_by_code(
        self,
        metadata_type: Type[T],
        metadata_source_name: str,
        metadata_set_code: str,
        first_result: int = 0,
        max_results: Optional[int] = None
    ) -> List[T]:
        return self.get_metadata_set_items(
            metadata_type,
            self._set_by_code(metadata_source_name, metadata_set_code),
            first_result,
            max_results,
        )
