# ==============================================
# STORAGE (MySQL + MongoDB)
# ==============================================
#
# Row clients for the metadata mapping tables. Both expose the
# same interface (insert / update / delete / fetch_one / fetch),
# so the DAO can run on either backend.
#
# Modules:
# --------
# - schema.py          → Table DDL and unique keys
# - mysql_client.py    → MySQL connection and operations
# - mongo_client.py    → MongoDB connection and operations
#
# ==============================================

from .mysql_client import MySQLClient
from .mongo_client import MongoClient

__all__ = [
    "MySQLClient",
    "MongoClient",
]
