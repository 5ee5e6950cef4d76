import re
from typing import Any, Dict, List, Optional

import pytest

from ddlforge.core.config import Settings
from ddlforge.crud.crud_metadata import (
    COLUMNS_QUERY, FOREIGN_KEY_QUERY, PRIMARY_KEY_QUERY, UNIQUE_QUERY
)
from ddlforge.crud.crud_schema import RESERVED_SCHEMAS, VISIBLE_SCHEMAS_QUERY
from ddlforge.crud.crud_table import (
    COLUMN_NAMES_QUERY, LIST_TABLES_QUERY, LOCATE_TABLE_QUERY, SEARCH_TABLES_QUERY
)
from ddlforge.db.session import DatabaseSession
from ddlforge.models.catalog_models import ConnectRequest

ROW_FETCH = re.compile(r'^SELECT \* FROM "(?P<schema>[^"]+)"\."(?P<table>[^"]+)"(?: ORDER BY (?P<order>.+?))? LIMIT :limit$')


class FakeResult:
    def __init__(self, rows: List[Dict[str, Any]]):
        self._rows = rows

    def mappings(self):
        return self

    def all(self):
        return list(self._rows)


class FakeConnection:
    def __init__(self, engine: "FakeEngine"):
        self.engine = engine

    async def __aenter__(self):
        if self.engine.connectError is not None:
            raise self.engine.connectError
        return self

    async def __aexit__(self, excType, exc, tb):
        return False

    async def execute(self, statement, params=None):
        sql = getattr(statement, "text", str(statement))
        params = dict(params or {})
        self.engine.executed.append((sql, params))
        if self.engine.onExecute is not None:
            await self.engine.onExecute(sql)
        return FakeResult(self.engine.catalog.answer(sql, params))


class FakeEngine:
    def __init__(self, catalog: "FakeCatalog", connectError: Optional[Exception] = None):
        self.catalog = catalog
        self.connectError = connectError
        self.disposed = False
        self.executed: List[tuple] = []
        self.onExecute = None

    def connect(self):
        return FakeConnection(self)

    async def dispose(self):
        self.disposed = True


class FakeCatalog:
    """In-memory stand-in for the PostgreSQL catalog views the service queries."""

    def __init__(self):
        self.schemas: List[str] = ["information_schema", "pg_catalog", "pg_toast"]
        self.tables: Dict[tuple, Dict[str, Any]] = {}
        self.failOn: Optional[str] = None

    def addTable(self, schema, name, columns, primaryKey=None, unique=None, foreignKeys=None, rows=None):
        if schema not in self.schemas:
            self.schemas.append(schema)
        self.tables[(schema, name)] = {
            "columns": columns,
            "primaryKey": primaryKey or [],
            "unique": unique or [],
            "foreignKeys": foreignKeys or [],
            "rows": rows or [],
        }

    def _inScope(self, params):
        return [(s, t) for (s, t) in self.tables if s in params["scope"]]

    def answer(self, sql: str, params: Dict[str, Any]) -> List[Dict[str, Any]]:
        if self.failOn is not None and self.failOn in sql:
            raise OSError(f"simulated failure on {self.failOn}")

        if sql == "SELECT 1":
            return [{"?column?": 1}]
        if sql == VISIBLE_SCHEMAS_QUERY:
            return [{"schema_name": s} for s in sorted(self.schemas) if s not in RESERVED_SCHEMAS]
        if sql == LIST_TABLES_QUERY:
            return [{"table_name": t} for t in sorted(t for _, t in self._inScope(params))]
        if sql == SEARCH_TABLES_QUERY:
            term = params["pattern"].strip("%").lower()
            matches = set()
            for key in self._inScope(params):
                table = self.tables[key]
                surfaces = [key[1]]
                for column in table["columns"]:
                    surfaces.append(column["column_name"])
                    surfaces.append(column.get("comment") or "")
                if any(term in s.lower() for s in surfaces):
                    matches.add(key[1])
            return [{"table_name": t} for t in sorted(matches)]
        if sql == LOCATE_TABLE_QUERY:
            return [{"table_schema": s} for (s, t) in self._inScope(params) if t == params["tableName"]]

        table = self.tables.get((params.get("schemaName"), params.get("tableName")))
        if sql == COLUMN_NAMES_QUERY:
            return [{"column_name": c["column_name"]} for c in table["columns"]] if table else []
        if sql == COLUMNS_QUERY:
            return list(table["columns"]) if table else []
        if sql == PRIMARY_KEY_QUERY:
            return [{"column_name": c, "constraint_name": "pk"} for c in table["primaryKey"]] if table else []
        if sql == UNIQUE_QUERY:
            return [{"constraint_name": n, "column_name": c} for n, c in table["unique"]] if table else []
        if sql == FOREIGN_KEY_QUERY:
            return list(table["foreignKeys"]) if table else []

        match = ROW_FETCH.match(sql)
        if match:
            rows = list(self.tables[(match.group("schema"), match.group("table"))]["rows"])
            if match.group("order"):
                orderColumns = [c.strip().strip('"') for c in match.group("order").split(",")]
                rows.sort(key=lambda r: tuple(r[c] for c in orderColumns))
            return rows[:params["limit"]]

        raise AssertionError(f"unexpected query: {sql}")


def column(name, dataType, ordinal, nullable="YES", length=None, precision=None, scale=None,
           default=None, comment=None, udtName=None):
    return {
        "column_name": name,
        "data_type": dataType,
        "udt_name": udtName,
        "character_maximum_length": length,
        "numeric_precision": precision,
        "numeric_scale": scale,
        "is_nullable": nullable,
        "column_default": default,
        "ordinal_position": ordinal,
        "comment": comment,
    }


@pytest.fixture
def catalog() -> FakeCatalog:
    shop = FakeCatalog()
    shop.addTable(
        "public", "users",
        columns=[
            column("id", "integer", 1, nullable="NO", precision=32, scale=0, default="nextval('users_id_seq'::regclass)"),
            column("email", "character varying", 2, length=255, comment="login e-mail"),
            column("nickname", "text", 3),
        ],
        primaryKey=["id"],
        unique=[("users_email_key", "email")],
        rows=[
            {"id": 1, "email": "ann@example.com", "nickname": "ann"},
            {"id": 2, "email": "bob@example.com", "nickname": None},
        ],
    )
    shop.addTable(
        "sales", "orders",
        columns=[
            column("id", "integer", 1, nullable="NO", precision=32, scale=0),
            column("customer_id", "integer", 2, precision=32, scale=0, comment="billing id"),
            column("user_id", "integer", 3, precision=32, scale=0),
            column("amount", "numeric", 4, precision=10, scale=2),
            column("note", "text", 5, comment="it's free text"),
        ],
        primaryKey=["id"],
        foreignKeys=[{
            "column_name": "user_id",
            "foreign_table_name": "users",
            "foreign_column_name": "id",
            "constraint_name": "orders_user_id_fkey",
        }],
        rows=[
            {"id": 5, "customer_id": 50, "user_id": 1, "amount": 10, "note": "it's"},
            {"id": 3, "customer_id": 30, "user_id": 2, "amount": 20, "note": None},
            {"id": 1, "customer_id": 10, "user_id": 1, "amount": 30, "note": "first"},
            {"id": 4, "customer_id": 40, "user_id": 2, "amount": 40, "note": "x"},
            {"id": 2, "customer_id": 20, "user_id": 1, "amount": 50, "note": "y"},
        ],
    )
    return shop


@pytest.fixture
def credentials() -> ConnectRequest:
    return ConnectRequest(host="db.local", port=5432, database="shop", username="reader", password="secret")


@pytest.fixture
def engines() -> List[FakeEngine]:
    return []


@pytest.fixture
def session(catalog, engines) -> DatabaseSession:
    def engineFactory(credentials, appSettings):
        engine = FakeEngine(catalog)
        engines.append(engine)
        return engine

    return DatabaseSession(appSettings=Settings(), engineFactory=engineFactory)
