# ==============================================
# MySQLClient
# ==============================================
#
# PURPOSE:
#   Manages the MySQL connection and all SQL operations for the
#   metadata mapping tables. Rows are plain dicts; converting them
#   to entities is the DAO's job.
#
# CLASS: MySQLClient
# ------------------
#   Stateful: holds connection to MySQL.
#
#   Constructor:
#   ------------
#   - __init__(host, port, user, password, database)
#       Store connection params. Don't connect yet.
#
#   Methods:
#   --------
#   - connect() / disconnect()
#   - ensure_schema() -> None
#       CREATE TABLE IF NOT EXISTS for every table in schema.MYSQL_TABLES.
#   - insert(table, row) -> int           → generated id
#   - update(table, row_id, row) -> None
#   - delete(table, row_id) -> None
#   - fetch_one(table, criteria) -> dict | None
#   - fetch(table, criteria, order_by, first_result, max_results) -> list[dict]
#   - fetch_all(query, params) -> list[dict]
#
#   Every write commits or rolls back on its own. Reads end their
#   transaction too, so the next read sees rows other clients have
#   committed since. Unique-constraint violations are raised as
#   ValidationError; other MySQL errors are re-raised as they are.
#
#   Context Manager:
#   ----------------
#   - __enter__ / __exit__ for `with MySQLClient(...) as db:` usage.
#
# ==============================================

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple, cast

import pymysql
import pymysql.cursors

from metadatamapping.exceptions import ValidationError
from metadatamapping.storage.schema import MYSQL_TABLES

logger = logging.getLogger(__name__)

# MySQL needs a LIMIT to use OFFSET; this is the documented "all rows" value
_ALL_ROWS = 18446744073709551615


class MySQLClient:
    def __init__(self, host, port, user, password, database):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.database = database
        self.connection = None

    def connect(self) -> None:
        # Establish connection to MySQL, create database if it doesn't exist
        self.connection = pymysql.connect(
            host=self.host,
            port=self.port,
            user=self.user,
            password=self.password,
            autocommit=False,
        )
        cursor = self.connection.cursor()
        cursor.execute(f"CREATE DATABASE IF NOT EXISTS {self.database}")
        cursor.execute(f"USE {self.database}")
        cursor.close()
        logger.info("Connected to MySQL %s:%s/%s", self.host, self.port, self.database)

    def disconnect(self) -> None:
        if self.connection:
            self.connection.close()
            self.connection = None
            logger.info("Disconnected from MySQL")

    def _require_connection(self):
        if self.connection is None:
            raise RuntimeError("Not connected to MySQL")
        return self.connection

    def ensure_schema(self) -> None:
        connection = self._require_connection()
        cursor = connection.cursor()
        for table_name, ddl in MYSQL_TABLES.items():
            cursor.execute(ddl)
            logger.debug("Ensured table %s", table_name)
        connection.commit()
        cursor.close()

    def insert(self, table_name: str, row: Dict[str, Any]) -> int:
        columns = list(row.keys())
        placeholders = ", ".join(["%s"] * len(columns))
        column_names = ", ".join(columns)
        query = f"INSERT INTO {table_name} ({column_names}) VALUES ({placeholders})"
        return self._write(query, tuple(row.values()))

    def update(self, table_name: str, row_id: int, row: Dict[str, Any]) -> None:
        set_clause = ", ".join(f"{col} = %s" for col in row.keys())
        query = f"UPDATE {table_name} SET {set_clause} WHERE id = %s"
        self._write(query, tuple(row.values()) + (row_id,))

    def delete(self, table_name: str, row_id: int) -> None:
        self._write(f"DELETE FROM {table_name} WHERE id = %s", (row_id,))

    def _write(self, query: str, params: tuple) -> int:
        # Run one statement in its own transaction, return the generated id
        connection = self._require_connection()
        cursor = connection.cursor()
        try:
            cursor.execute(query, params)
            connection.commit()
            return cursor.lastrowid
        except pymysql.err.IntegrityError as e:
            connection.rollback()
            logger.warning("MySQL write rolled back: %s", str(e)[:200])
            raise ValidationError(f"Constraint violated: {e}") from e
        except pymysql.err.MySQLError as e:
            connection.rollback()
            logger.error("MySQL write failed: %s", str(e)[:200])
            raise
        finally:
            cursor.close()

    def fetch_one(self, table_name: str, criteria: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        rows = self.fetch(table_name, criteria, max_results=1)
        return rows[0] if rows else None

    def fetch(
        self,
        table_name: str,
        criteria: Optional[Dict[str, Any]] = None,
        order_by: Optional[Sequence[Tuple[str, bool]]] = None,
        first_result: int = 0,
        max_results: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        """
        Select rows matching all criteria.

        Args:
            table_name: Table to read
            criteria: column -> value equality filters (None matches NULL)
            order_by: (column, ascending) pairs
            first_result: Zero based offset of the first row
            max_results: Maximum number of rows, None for all

        Returns:
            Rows as dicts
        """
        where_clause, params = self._where_clause(criteria or {})
        query = f"SELECT * FROM {table_name}{where_clause}"
        if order_by:
            order_parts = [
                f"{col} {'ASC' if ascending else 'DESC'}" for col, ascending in order_by
            ]
            query += " ORDER BY " + ", ".join(order_parts)
        if max_results is not None or first_result:
            query += " LIMIT %s OFFSET %s"
            params += (_ALL_ROWS if max_results is None else max_results, first_result)
        return self.fetch_all(query, params or None)

    @staticmethod
    def _where_clause(criteria: Dict[str, Any]) -> Tuple[str, tuple]:
        conditions = []
        params = []
        for col, value in criteria.items():
            if value is None:
                conditions.append(f"{col} IS NULL")
            else:
                conditions.append(f"{col} = %s")
                params.append(value)
        if not conditions:
            return "", ()
        return " WHERE " + " AND ".join(conditions), tuple(params)

    def fetch_all(self, query: str, params: tuple | None = None) -> List[Dict[str, Any]]:
        # Execute SELECT and return rows as dicts, then end the read snapshot
        connection = self._require_connection()
        cursor = connection.cursor(pymysql.cursors.DictCursor)
        try:
            if params is not None:
                cursor.execute(query, params)
            else:
                cursor.execute(query)
            results = cast(List[Dict[str, Any]], cursor.fetchall())
        except pymysql.err.MySQLError:
            connection.rollback()
            raise
        finally:
            cursor.close()
        connection.commit()
        return list(results)

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.disconnect()
