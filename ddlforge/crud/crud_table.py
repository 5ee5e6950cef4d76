import logging
from typing import List, Optional, Sequence

from ddlforge.db.session import SessionSnapshot
from ddlforge.core.exceptions import NoSuchTableException
from ddlforge.models.catalog_models import RowSet
from ddlforge.services.sql_identifiers import quoteIdentifier, quoteQualified

logger = logging.getLogger(__name__)

LIST_TABLES_QUERY = """
    SELECT table_name
    FROM information_schema.tables
    WHERE table_schema = ANY(:scope)
      AND table_type = 'BASE TABLE'
    ORDER BY table_name
"""

# A table matches when its name, any column name, or any column comment matches.
SEARCH_TABLES_QUERY = """
    SELECT DISTINCT t.table_name
    FROM information_schema.tables t
    LEFT JOIN information_schema.columns c
      ON t.table_name = c.table_name
      AND t.table_schema = c.table_schema
    LEFT JOIN pg_catalog.pg_statio_all_tables st
      ON c.table_schema = st.schemaname
      AND c.table_name = st.relname
    LEFT JOIN pg_catalog.pg_description pgd
      ON pgd.objoid = st.relid
      AND pgd.objsubid = c.ordinal_position
    WHERE t.table_schema = ANY(:scope)
      AND t.table_type = 'BASE TABLE'
      AND (
        t.table_name ILIKE :pattern
        OR c.column_name ILIKE :pattern
        OR pgd.description ILIKE :pattern
      )
    ORDER BY t.table_name
"""

LOCATE_TABLE_QUERY = """
    SELECT table_schema
    FROM information_schema.tables
    WHERE table_name = :tableName
      AND table_schema = ANY(:scope)
      AND table_type = 'BASE TABLE'
"""

COLUMN_NAMES_QUERY = """
    SELECT column_name
    FROM information_schema.columns
    WHERE table_name = :tableName
      AND table_schema = :schemaName
    ORDER BY ordinal_position
"""

class CRUDTable:
    async def listTables(self, snapshot: SessionSnapshot, searchTerm: Optional[str] = None) -> List[str]:
        if searchTerm and searchTerm.strip():
            rows = await snapshot.query(
                "searching tables",
                SEARCH_TABLES_QUERY,
                {"scope": list(snapshot.scope), "pattern": f"%{searchTerm}%"}
            )
        else:
            rows = await snapshot.query("listing tables", LIST_TABLES_QUERY, {"scope": list(snapshot.scope)})
        return [row["table_name"] for row in rows]

    async def locateTable(self, snapshot: SessionSnapshot, tableName: str) -> str:
        rows = await snapshot.query(
            f"locating table '{tableName}'",
            LOCATE_TABLE_QUERY,
            {"tableName": tableName, "scope": list(snapshot.scope)}
        )
        found = {row["table_schema"] for row in rows}
        # same-named tables in several schemas resolve in scope order
        for schemaName in snapshot.scope:
            if schemaName in found:
                return schemaName
        raise NoSuchTableException(tableName, scope=list(snapshot.scope))

    async def getColumnNames(self, snapshot: SessionSnapshot, schemaName: str, tableName: str) -> List[str]:
        rows = await snapshot.query(
            f"reading columns of '{tableName}'",
            COLUMN_NAMES_QUERY,
            {"tableName": tableName, "schemaName": schemaName}
        )
        return [row["column_name"] for row in rows]

    async def fetchRows(
        self,
        snapshot: SessionSnapshot,
        schemaName: str,
        tableName: str,
        limit: int,
        orderBy: Optional[Sequence[str]] = None
    ) -> RowSet:
        columns = await self.getColumnNames(snapshot, schemaName, tableName)

        statement = f"SELECT * FROM {quoteQualified(schemaName, tableName)}"
        if orderBy:
            statement += " ORDER BY " + ", ".join(quoteIdentifier(c, force=True) for c in orderBy)
        statement += " LIMIT :limit"

        rows = await snapshot.query(f"fetching rows of '{tableName}'", statement, {"limit": limit})
        logger.debug("Fetched %d row(s) from %s.%s (limit %d)", len(rows), schemaName, tableName, limit)
        return RowSet(columns=columns, rows=rows)

crudTable = CRUDTable()
