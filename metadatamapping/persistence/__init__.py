# ==============================================
# PERSISTENCE
# ==============================================
#
# Modules:
# --------
# - dao.py             → Entity save/load on top of a storage client
# - property_store.py  → Global properties kept in a JSON file
#
# ==============================================

from .dao import MetadataMappingDao
from .property_store import PropertyStore

__all__ = [
    "MetadataMappingDao",
    "PropertyStore",
]
