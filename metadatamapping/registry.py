# ==============================================
# MetadataTypeRegistry
# ==============================================
#
# PURPOSE:
#   Term mappings and set members point at items of any metadata
#   type through a MetadataReference (class name + uuid). This
#   registry maps each class name to the type and a loader that
#   fetches an item by uuid.
#
# USAGE:
# ------
#   registry = MetadataTypeRegistry()
#   registry.register(Location, location_service.get_by_uuid)
#   item = registry.resolve(MetadataReference("Location", uuid))
#
# ==============================================

from typing import Any, Callable, Dict, Optional, Tuple

from metadatamapping.exceptions import InvalidMetadataTypeException
from metadatamapping.model import MetadataReference

Loader = Callable[[str], Optional[Any]]


class MetadataTypeRegistry:
    def __init__(self):
        self._types: Dict[str, Tuple[type, Loader]] = {}

    @staticmethod
    def tag_for(type_or_item: Any) -> str:
        """Class name used as the metadata_class of references."""
        if isinstance(type_or_item, type):
            return type_or_item.__name__
        return type(type_or_item).__name__

    def register(self, metadata_type: type, loader: Loader) -> None:
        self._types[self.tag_for(metadata_type)] = (metadata_type, loader)

    def resolve(self, reference: MetadataReference) -> Optional[Any]:
        """
        Load the item a reference points at.

        Returns:
            The item, or None if the loader finds nothing

        Raises:
            InvalidMetadataTypeException: no loader for the reference's class
        """
        try:
            _, loader = self._types[reference.metadata_class]
        except KeyError:
            raise InvalidMetadataTypeException(
                f"No metadata type registered as '{reference.metadata_class}'"
            ) from None
        return loader(reference.metadata_uuid)
