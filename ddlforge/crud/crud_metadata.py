import asyncio
import logging
from collections import OrderedDict
from typing import Any, Dict, List, Optional

from ddlforge.db.session import SessionSnapshot
from ddlforge.crud.crud_table import crudTable
from ddlforge.core.exceptions import MetadataQueryException
from ddlforge.models.catalog_models import (
    ColumnInfo, ColumnMetadata, ConstraintGroup, ConstraintKind, ForeignKeyColumn,
    ForeignKeyConstraint, KeyClass, TableMetadata
)

logger = logging.getLogger(__name__)

# Integer and floating point types report an implicit precision that is not part of their declaration.
PRECISION_TYPES = {"numeric", "decimal"}

COLUMNS_QUERY = """
    SELECT
      c.column_name,
      c.data_type,
      c.udt_name,
      c.character_maximum_length,
      c.numeric_precision,
      c.numeric_scale,
      c.is_nullable,
      c.column_default,
      c.ordinal_position,
      pgd.description AS comment
    FROM information_schema.columns c
    LEFT JOIN pg_catalog.pg_statio_all_tables st
      ON c.table_schema = st.schemaname
      AND c.table_name = st.relname
    LEFT JOIN pg_catalog.pg_description pgd
      ON pgd.objoid = st.relid
      AND pgd.objsubid = c.ordinal_position
    WHERE c.table_name = :tableName
      AND c.table_schema = :schemaName
    ORDER BY c.ordinal_position
"""

PRIMARY_KEY_QUERY = """
    SELECT ku.column_name, tc.constraint_name
    FROM information_schema.table_constraints tc
    JOIN information_schema.key_column_usage ku
      ON tc.constraint_name = ku.constraint_name
      AND tc.table_schema = ku.table_schema
      AND tc.table_name = ku.table_name
    WHERE tc.constraint_type = 'PRIMARY KEY'
      AND tc.table_name = :tableName
      AND tc.table_schema = :schemaName
    ORDER BY ku.ordinal_position
"""

UNIQUE_QUERY = """
    SELECT ku.column_name, tc.constraint_name
    FROM information_schema.table_constraints tc
    JOIN information_schema.key_column_usage ku
      ON tc.constraint_name = ku.constraint_name
      AND tc.table_schema = ku.table_schema
      AND tc.table_name = ku.table_name
    WHERE tc.constraint_type = 'UNIQUE'
      AND tc.table_name = :tableName
      AND tc.table_schema = :schemaName
    ORDER BY tc.constraint_name, ku.ordinal_position
"""

# Referenced columns are paired with referencing columns through position_in_unique_constraint.
FOREIGN_KEY_QUERY = """
    SELECT
      kcu.column_name,
      ref.table_name AS foreign_table_name,
      ref.column_name AS foreign_column_name,
      tc.constraint_name
    FROM information_schema.table_constraints tc
    JOIN information_schema.key_column_usage kcu
      ON tc.constraint_name = kcu.constraint_name
      AND tc.table_schema = kcu.table_schema
      AND tc.table_name = kcu.table_name
    JOIN information_schema.referential_constraints rc
      ON rc.constraint_name = tc.constraint_name
      AND rc.constraint_schema = tc.constraint_schema
    JOIN information_schema.key_column_usage ref
      ON ref.constraint_name = rc.unique_constraint_name
      AND ref.constraint_schema = rc.unique_constraint_schema
      AND ref.ordinal_position = kcu.position_in_unique_constraint
    WHERE tc.constraint_type = 'FOREIGN KEY'
      AND tc.table_name = :tableName
      AND tc.table_schema = :schemaName
    ORDER BY tc.constraint_name, kcu.ordinal_position
"""


class CRUDMetadata:
    def buildColumn(self, row: Dict[str, Any], primaryKeyColumns: set, uniqueColumns: set) -> ColumnMetadata:
        name = row["column_name"]
        if name in primaryKeyColumns:
            keyClass = KeyClass.PRIMARY
        elif name in uniqueColumns:
            keyClass = KeyClass.UNIQUE
        else:
            keyClass = KeyClass.NONE

        dataType = row["data_type"]
        precision = row.get("numeric_precision") if dataType in PRECISION_TYPES else None
        scale = row.get("numeric_scale") if precision is not None else None

        return ColumnMetadata(
            name=name,
            dataType=dataType,
            udtName=row.get("udt_name"),
            characterMaximumLength=row.get("character_maximum_length"),
            numericPrecision=precision,
            numericScale=scale,
            nullable=str(row["is_nullable"]).upper() != "NO",
            defaultExpression=row.get("column_default") or None,
            comment=row.get("comment") or None,
            keyClass=keyClass,
            ordinalPosition=row["ordinal_position"],
        )

    def groupConstraints(self, rows: List[Dict[str, Any]], kind: ConstraintKind) -> List[ConstraintGroup]:
        groups: "OrderedDict[str, ConstraintGroup]" = OrderedDict()
        for row in rows:
            name = row["constraint_name"]
            if name not in groups:
                groups[name] = ConstraintGroup(name=name, kind=kind)
            groups[name].columns.append(row["column_name"])
        return list(groups.values())

    def groupForeignKeys(self, rows: List[Dict[str, Any]]) -> List[ForeignKeyConstraint]:
        groups: "OrderedDict[str, ForeignKeyConstraint]" = OrderedDict()
        for row in rows:
            name = row["constraint_name"]
            if name not in groups:
                groups[name] = ForeignKeyConstraint(name=name)
            groups[name].columns.append(ForeignKeyColumn(
                column=row["column_name"],
                referencedTable=row["foreign_table_name"],
                referencedColumn=row["foreign_column_name"],
            ))
        return list(groups.values())

    def mergeTableMetadata(
        self,
        tableName: str,
        schemaName: Optional[str],
        columnRows: List[Dict[str, Any]],
        primaryKeyRows: List[Dict[str, Any]],
        uniqueRows: List[Dict[str, Any]],
        foreignKeyRows: List[Dict[str, Any]],
    ) -> TableMetadata:
        primaryKeyGroups = self.groupConstraints(primaryKeyRows, ConstraintKind.PRIMARY_KEY)
        primaryKey = primaryKeyGroups[0] if primaryKeyGroups else None
        uniqueConstraints = self.groupConstraints(uniqueRows, ConstraintKind.UNIQUE)

        primaryKeyColumns = set(primaryKey.columns) if primaryKey else set()
        uniqueColumns = {c for group in uniqueConstraints for c in group.columns}

        try:
            columns = [self.buildColumn(row, primaryKeyColumns, uniqueColumns) for row in columnRows]
        except (KeyError, TypeError, ValueError) as e:
            raise MetadataQueryException(f"reading column metadata of '{tableName}'", reason=f"unexpected catalog row: {e}")
        columns.sort(key=lambda c: c.ordinalPosition)

        return TableMetadata(
            tableName=tableName,
            schemaName=schemaName,
            columns=columns,
            primaryKey=primaryKey,
            uniqueConstraints=uniqueConstraints,
            foreignKeys=self.groupForeignKeys(foreignKeyRows),
        )

    async def getPrimaryKeyColumns(self, snapshot: SessionSnapshot, schemaName: str, tableName: str) -> List[str]:
        rows = await snapshot.query(
            f"reading primary key of '{tableName}'",
            PRIMARY_KEY_QUERY,
            {"tableName": tableName, "schemaName": schemaName}
        )
        return [row["column_name"] for row in rows]

    async def collectTableMetadata(self, snapshot: SessionSnapshot, tableName: str) -> TableMetadata:
        schemaName = await crudTable.locateTable(snapshot, tableName)
        params = {"tableName": tableName, "schemaName": schemaName}

        columnRows, primaryKeyRows, uniqueRows, foreignKeyRows = await asyncio.gather(
            snapshot.query(f"reading columns of '{tableName}'", COLUMNS_QUERY, params),
            snapshot.query(f"reading primary key of '{tableName}'", PRIMARY_KEY_QUERY, params),
            snapshot.query(f"reading unique constraints of '{tableName}'", UNIQUE_QUERY, params),
            snapshot.query(f"reading foreign keys of '{tableName}'", FOREIGN_KEY_QUERY, params),
        )

        metadata = self.mergeTableMetadata(
            tableName, schemaName, columnRows, primaryKeyRows, uniqueRows, foreignKeyRows
        )
        logger.debug(
            "Collected metadata for %s.%s: %d column(s), %d unique, %d foreign key(s)",
            schemaName, tableName, len(metadata.columns), len(metadata.uniqueConstraints), len(metadata.foreignKeys)
        )
        return metadata

    async def describeColumns(self, snapshot: SessionSnapshot, tableName: str) -> List[ColumnInfo]:
        metadata = await self.collectTableMetadata(snapshot, tableName)
        columnInfos = []
        for column in metadata.columns:
            columnType = column.dataType
            if column.characterMaximumLength:
                columnType = f"{column.dataType}({column.characterMaximumLength})"
            columnInfos.append(ColumnInfo(
                name=column.name,
                type=columnType,
                key=column.keyClass.value,
                isNullable="YES" if column.nullable else "NO",
                defaultValue=column.defaultExpression,
                comment=column.comment,
                extra="",
            ))
        return columnInfos

crudMetadata = CRUDMetadata()
