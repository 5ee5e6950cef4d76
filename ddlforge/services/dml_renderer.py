import json
import math
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, List, Sequence

from ddlforge.models.catalog_models import RowSet
from ddlforge.services.sql_identifiers import quoteIdentifier, quoteLiteral

class DmlRenderer:
    def formatLiteral(self, value: Any) -> str:
        if value is None:
            return "NULL"
        # bool before numbers, bool is an int subclass
        if isinstance(value, bool):
            return "TRUE" if value else "FALSE"
        if isinstance(value, float) and math.isfinite(value):
            return repr(value)
        if isinstance(value, Decimal) and value.is_finite():
            return str(value)
        if isinstance(value, int):
            return str(value)
        if isinstance(value, (list, tuple)):
            # asyncpg decodes array columns to lists
            return quoteLiteral(self.formatArrayLiteral(value))
        return quoteLiteral(self.literalText(value))

    def literalText(self, value: Any) -> str:
        """Text form of a non-null scalar, before SQL quoting."""
        if isinstance(value, str):
            return value
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, (datetime, date, time)):
            return value.isoformat()
        if isinstance(value, float):
            if math.isnan(value):
                return "NaN"
            if math.isinf(value):
                return "Infinity" if value > 0 else "-Infinity"
            return repr(value)
        if isinstance(value, Decimal):
            return "NaN" if value.is_nan() else str(value)
        if isinstance(value, (bytes, bytearray, memoryview)):
            return "\\x" + bytes(value).hex()
        if isinstance(value, dict):
            return json.dumps(value, default=str)
        return str(value)

    def formatArrayLiteral(self, values: Sequence[Any]) -> str:
        elements = []
        for item in values:
            if item is None:
                elements.append("NULL")
            elif isinstance(item, (list, tuple)):
                elements.append(self.formatArrayLiteral(item))
            else:
                text = self.literalText(item)
                elements.append('"' + text.replace("\\", "\\\\").replace('"', '\\"') + '"')
        return "{" + ",".join(elements) + "}"

    def renderInsert(self, tableName: str, columns: Sequence[str], row: dict) -> str:
        columnList = ", ".join(quoteIdentifier(c) for c in columns)
        values = ", ".join(self.formatLiteral(row.get(c)) for c in columns)
        return f"INSERT INTO {quoteIdentifier(tableName)} ({columnList}) VALUES ({values});\n"

    def renderInserts(self, columns: List[str], rowSet: RowSet, tableName: str) -> str:
        return "".join(self.renderInsert(tableName, columns, row) for row in rowSet.rows)

dmlRenderer = DmlRenderer()
