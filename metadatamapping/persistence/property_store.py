import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Dict, Optional


logger = logging.getLogger(__name__)


# ==============================================
# PropertyStore
# ==============================================
#
# PURPOSE:
#   Key/value store for the global properties the service reads
#   and writes (implementation id, local source uuid, subscribed
#   sources, ...). Values survive restarts because they are kept
#   in a JSON file.
#
# CLASS: PropertyStore
# --------------------
#   Stateful: holds a reference to the storage directory.
#   Every call re-reads the file; nothing is cached in memory.
#
#   Constructor:
#   ------------
#   - __init__(storage_dir: str = "metadata/")
#       Create storage directory if it doesn't exist.
#
class PropertyStore:
    """
    Handles persistence of global properties to disk.

    Files created:
    - metadata/global_properties.json  → {property name: value}
    """

    def __init__(self, storage_dir: str = "metadata/"):
        """
        Initialize the property store.

        Args:
            storage_dir: Directory to store the properties file
        """
        self.storage_dir = Path(storage_dir)
        self.storage_dir.mkdir(parents=True, exist_ok=True)
        self.properties_file = self.storage_dir / "global_properties.json"

#   Methods:
#   --------
#   - get_value(key) -> str | None
#       Blank values are reported as None.
#
#   - set_value(key, value) -> None
#       None removes the property. The file is replaced atomically.
#
#   - get_all() -> dict[str, str]
#
    def get_value(self, key: str) -> Optional[str]:
        value = self.get_all().get(key)
        if value is None or not str(value).strip():
            return None
        return str(value)

    def set_value(self, key: str, value: Optional[str]) -> None:
        """
        Save one property to disk.

        Args:
            key: Property name
            value: New value, or None to remove the property
        """
        properties = self.get_all()
        if value is None:
            properties.pop(key, None)
        else:
            properties[key] = str(value)

        # The properties file is only ever replaced by a complete one
        fd, tmp_path = tempfile.mkstemp(dir=self.storage_dir, prefix=".global_properties.", suffix=".tmp")
        try:
            with os.fdopen(fd, 'w') as f:
                json.dump(properties, f, indent=2, sort_keys=True)
            os.replace(tmp_path, self.properties_file)
        except BaseException:
            os.unlink(tmp_path)
            raise

        logger.debug("Saved property %s to %s", key, self.properties_file)

    def get_all(self) -> Dict[str, str]:
        """
        Load all properties from disk.

        Returns:
            Dictionary mapping property name -> value
            Empty dict if file doesn't exist
        """
        if not self.properties_file.exists():
            return {}

        with open(self.properties_file, 'r') as f:
            return json.load(f)

#   UTILITY:
#   - exists() -> bool
#   - clear() -> None
#       Delete the properties file (for testing or reset).
#
    def exists(self) -> bool:
        return self.properties_file.exists()

    def clear(self) -> None:
        if self.properties_file.exists():
            self.properties_file.unlink()
            logger.info("Deleted %s", self.properties_file)
