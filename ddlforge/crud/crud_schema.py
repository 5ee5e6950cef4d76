import re
from typing import List

from ddlforge.db.session import DatabaseSession

RESERVED_SCHEMAS = ("information_schema", "pg_catalog", "pg_toast")

# per-backend temporary schemas: pg_temp_3, pg_toast_temp_3
TEMPORARY_SCHEMA = re.compile(r"^pg_(toast_)?temp_")

VISIBLE_SCHEMAS_QUERY = """
    SELECT schema_name
    FROM information_schema.schemata
    WHERE schema_name <> ALL(:reserved)
      AND schema_name !~ '^pg_(toast_)?temp_'
    ORDER BY schema_name
"""

def isReservedSchema(schemaName: str) -> bool:
    return schemaName in RESERVED_SCHEMAS or TEMPORARY_SCHEMA.match(schemaName) is not None

class CRUDSchema:
    async def resolveVisibleSchemas(self, session: DatabaseSession) -> List[str]:
        snapshot = await session.snapshot()
        rows = await snapshot.query(
            "resolving visible schemas", VISIBLE_SCHEMAS_QUERY, {"reserved": list(RESERVED_SCHEMAS)}
        )
        schemaNames = [row["schema_name"] for row in rows if not isReservedSchema(row["schema_name"])]
        await session.updateScope(snapshot.engine, schemaNames)
        return schemaNames

crudSchema = CRUDSchema()
