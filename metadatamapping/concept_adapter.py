# ==============================================
# ConceptAdapter
# ==============================================
#
# PURPOSE:
#   The concept dictionary belongs to the host platform. The
#   service reaches it only through this interface, which the
#   host implements.
#
#   Concepts must expose `concept_id` and `retired`.
#   Concept sources must expose `uuid` and `name`.
#   Mappings are opaque; they are only handed back to the adapter.
#
# ==============================================

from abc import ABC, abstractmethod
from typing import Any, Iterable, List, Optional


class ConceptAdapter(ABC):

    # --- concepts ---

    @abstractmethod
    def get_concept(self, concept_id: int) -> Optional[Any]:
        """Return the concept with the given id, retired or not."""

    @abstractmethod
    def get_concepts_by_mapping(self, code: str, source_name: str) -> List[Any]:
        """Return every concept mapped to code in the named source, retired included."""

    @abstractmethod
    def get_all_concepts(self) -> Iterable[Any]:
        pass

    @abstractmethod
    def save_concept(self, concept: Any) -> Any:
        pass

    # --- concept sources ---

    @abstractmethod
    def get_concept_source_by_uuid(self, uuid: str) -> Optional[Any]:
        pass

    @abstractmethod
    def get_concept_source_by_name(self, name: str) -> Optional[Any]:
        pass

    @abstractmethod
    def create_concept_source(self, name: str, description: str) -> Any:
        """Create and persist a new concept source."""

    # --- mappings ---

    @abstractmethod
    def get_mapping_sources(self, concept: Any) -> List[Any]:
        """Return the sources of all mappings of the concept."""

    @abstractmethod
    def get_mapping(self, concept: Any, source: Any) -> Optional[Any]:
        """Return the concept's mapping to source, or None."""

    @abstractmethod
    def add_mapping(self, concept: Any, source: Any, code: str) -> None:
        pass

    @abstractmethod
    def remove_mapping(self, concept: Any, mapping: Any) -> None:
        pass

    @abstractmethod
    def retire_mapping(self, concept: Any, mapping: Any) -> None:
        pass

    @abstractmethod
    def unretire_mapping(self, concept: Any, mapping: Any) -> None:
        pass
