# ==============================================
# MetadataMappingDao
# ==============================================
#
# PURPOSE:
#   Entity-level persistence on top of a row client (MySQLClient
#   or MongoClient). Converts entities to rows with to_dict(),
#   rows back to entities with from_dict(), and re-attaches the
#   referenced entities (metadata_source, metadata_set) on load.
#
# CLASS: MetadataMappingDao
# -------------------------
#   Constructor:
#   ------------
#   - __init__(client)
#
#   Methods:
#   --------
#   - save(entity) -> entity               → insert if no id, else update
#   - get_by_id(type, id) -> entity | None
#   - get_by_uuid(type, uuid) -> entity | None
#   - get_by_property(type, name, value) -> entity | None
#   - find(type, criteria, order_by, first_result, max_results) -> list
#   - delete(entity) -> None
#
#   Criteria may use reference attributes directly, e.g.
#   {"metadata_source": source}; they are rewritten to the
#   "<attribute>_id" column.
#
# ==============================================

from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple, Type, TypeVar

from metadatamapping.model import BaseMetadata

T = TypeVar("T", bound=BaseMetadata)


class MetadataMappingDao:
    def __init__(self, client):
        self.client = client

    def save(self, entity: T) -> T:
        if entity.date_created is None:
            entity.date_created = datetime.now()
        row = entity.to_dict()
        row.pop("id", None)
        if entity.id is None:
            entity.id = self.client.insert(entity.TABLE, row)
        else:
            self.client.update(entity.TABLE, entity.id, row)
        return entity

    def get_by_id(self, entity_type: Type[T], entity_id: Optional[int]) -> Optional[T]:
        if entity_id is None:
            return None
        return self.get_by_property(entity_type, "id", entity_id)

    def get_by_uuid(self, entity_type: Type[T], uuid: Optional[str]) -> Optional[T]:
        if uuid is None:
            return None
        return self.get_by_property(entity_type, "uuid", uuid)

    def get_by_property(self, entity_type: Type[T], name: str, value: Any) -> Optional[T]:
        criteria = self._columns(entity_type, {name: value})
        row = self.client.fetch_one(entity_type.TABLE, criteria)
        return self._hydrate(entity_type, row) if row is not None else None

    def find(
        self,
        entity_type: Type[T],
        criteria: Optional[Dict[str, Any]] = None,
        order_by: Optional[Sequence[Tuple[str, bool]]] = None,
        first_result: int = 0,
        max_results: Optional[int] = None
    ) -> List[T]:
        """
        Find entities matching all criteria.

        Args:
            entity_type: Entity class to load
            criteria: attribute -> value equality filters
            order_by: (attribute, ascending) pairs; id ascending is always
                appended so pages are repeatable
            first_result: Zero based index of the first entity
            max_results: Maximum number of entities, None for all

        Returns:
            List of entities
        """
        order = list(order_by or [])
        if not any(column == "id" for column, _ in order):
            order.append(("id", True))
        rows = self.client.fetch(
            entity_type.TABLE,
            self._columns(entity_type, criteria or {}),
            order,
            first_result,
            max_results,
        )
        return [self._hydrate(entity_type, row) for row in rows]

    def delete(self, entity: BaseMetadata) -> None:
        if entity.id is not None:
            self.client.delete(entity.TABLE, entity.id)
            entity.id = None

    @staticmethod
    def _columns(entity_type: Type[BaseMetadata], criteria: Dict[str, Any]) -> Dict[str, Any]:
        columns = {}
        for name, value in criteria.items():
            if name in entity_type.REFERENCES:
                columns[f"{name}_id"] = value.id if value is not None else None
            else:
                columns[name] = value
        return columns

    def _hydrate(self, entity_type: Type[T], row: Dict[str, Any]) -> T:
        entity = entity_type.from_dict(row)
        for name, reference_type in entity_type.REFERENCES.items():
            setattr(entity, name, self.get_by_id(reference_type, row.get(f"{name}_id")))
        return entity
