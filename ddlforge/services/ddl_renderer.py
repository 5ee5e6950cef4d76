from typing import List

from ddlforge.models.catalog_models import ColumnMetadata, TableMetadata
from ddlforge.services.sql_identifiers import needsQuoting, quoteIdentifier, quoteLiteral

TYPE_ALIASES = {
    "character varying": "VARCHAR",
    "character": "CHAR",
}

class DdlRenderer:
    def renderTypeName(self, column: ColumnMetadata) -> str:
        if column.dataType == "ARRAY" and column.udtName:
            # array udt names carry a leading underscore, e.g. _int4
            return column.udtName.lstrip("_").upper() + "[]"
        if column.dataType == "USER-DEFINED" and column.udtName:
            if not needsQuoting(column.udtName):
                return column.udtName.upper()
            return quoteIdentifier(column.udtName)
        return TYPE_ALIASES.get(column.dataType, column.dataType.upper())

    def renderColumnType(self, column: ColumnMetadata) -> str:
        typeName = self.renderTypeName(column)
        if column.characterMaximumLength:
            return f"{typeName}({column.characterMaximumLength})"
        if column.numericPrecision:
            if column.numericScale is not None:
                return f"{typeName}({column.numericPrecision},{column.numericScale})"
            return f"{typeName}({column.numericPrecision})"
        return typeName

    def renderColumnDefinition(self, column: ColumnMetadata) -> str:
        definition = f"  {quoteIdentifier(column.name)} {self.renderColumnType(column)}"
        if not column.nullable:
            definition += " NOT NULL"
        if column.defaultExpression:
            definition += f" DEFAULT {column.defaultExpression}"
        return definition

    def renderColumnList(self, columnNames: List[str]) -> str:
        return ", ".join(quoteIdentifier(name) for name in columnNames)

    def renderCreateTable(self, metadata: TableMetadata) -> str:
        tableName = quoteIdentifier(metadata.tableName)
        columns = sorted(metadata.columns, key=lambda c: c.ordinalPosition)

        ddl = f"CREATE TABLE {tableName} (\n"
        ddl += ",\n".join(self.renderColumnDefinition(column) for column in columns)

        if metadata.primaryKey and metadata.primaryKey.columns:
            ddl += f",\n  PRIMARY KEY ({self.renderColumnList(metadata.primaryKey.columns)})"

        for unique in metadata.uniqueConstraints:
            ddl += f",\n  CONSTRAINT {quoteIdentifier(unique.name)} UNIQUE ({self.renderColumnList(unique.columns)})"

        for foreignKey in metadata.foreignKeys:
            ddl += (
                f",\n  CONSTRAINT {quoteIdentifier(foreignKey.name)}"
                f" FOREIGN KEY ({self.renderColumnList(foreignKey.localColumns)})"
                f" REFERENCES {quoteIdentifier(foreignKey.referencedTable)}"
                f"({self.renderColumnList(foreignKey.referencedColumns)})"
            )

        ddl += "\n);"

        comments = [
            f"COMMENT ON COLUMN {tableName}.{quoteIdentifier(column.name)} IS {quoteLiteral(column.comment)};"
            for column in columns
            if column.comment
        ]
        if comments:
            ddl += "\n\n" + "\n".join(comments)

        return ddl

ddlRenderer = DdlRenderer()
