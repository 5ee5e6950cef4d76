from enum import Enum
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Dict, Any, Optional

class KeyClass(str, Enum):
    NONE = ""
    UNIQUE = "UNI"
    PRIMARY = "PRI"

class ConstraintKind(str, Enum):
    PRIMARY_KEY = "PRIMARY KEY"
    UNIQUE = "UNIQUE"
    FOREIGN_KEY = "FOREIGN KEY"

class ColumnMetadata(BaseModel):
    name: str
    dataType: str
    udtName: Optional[str] = None
    characterMaximumLength: Optional[int] = None
    numericPrecision: Optional[int] = None
    numericScale: Optional[int] = None
    nullable: bool = True
    defaultExpression: Optional[str] = None
    comment: Optional[str] = None
    keyClass: KeyClass = KeyClass.NONE
    ordinalPosition: int

class ConstraintGroup(BaseModel):
    name: str
    kind: ConstraintKind
    columns: List[str] = Field(default_factory=list)

class ForeignKeyColumn(BaseModel):
    column: str
    referencedTable: str
    referencedColumn: str

class ForeignKeyConstraint(BaseModel):
    name: str
    kind: ConstraintKind = ConstraintKind.FOREIGN_KEY
    columns: List[ForeignKeyColumn] = Field(default_factory=list)

    @property
    def localColumns(self) -> List[str]:
        return [c.column for c in self.columns]

    @property
    def referencedTable(self) -> str:
        return self.columns[0].referencedTable if self.columns else ""

    @property
    def referencedColumns(self) -> List[str]:
        return [c.referencedColumn for c in self.columns]

class TableMetadata(BaseModel):
    tableName: str
    schemaName: Optional[str] = None
    columns: List[ColumnMetadata] = Field(default_factory=list)
    primaryKey: Optional[ConstraintGroup] = None
    uniqueConstraints: List[ConstraintGroup] = Field(default_factory=list)
    foreignKeys: List[ForeignKeyConstraint] = Field(default_factory=list)

    def getColumn(self, name: str) -> Optional[ColumnMetadata]:
        for column in self.columns:
            if column.name == name:
                return column
        return None

class RowSet(BaseModel):
    columns: List[str]
    rows: List[Dict[str, Any]] = Field(default_factory=list)

    @property
    def rowCount(self) -> int:
        return len(self.rows)


# Request / response payloads

class ConnectRequest(BaseModel):
    host: str
    port: int = 5432
    database: str
    username: str
    password: str = ""

class MessageResponse(BaseModel):
    success: bool = True
    message: str

class SchemaResponse(BaseModel):
    success: bool = True
    schemaNames: List[str] = Field(alias="schema")

    model_config = ConfigDict(populate_by_name=True)

class TablesResponse(BaseModel):
    success: bool = True
    tables: List[str]

class ColumnInfo(BaseModel):
    name: str
    type: str
    key: str
    isNullable: str = Field(alias="null")
    defaultValue: Optional[str] = Field(None, alias="default")
    comment: Optional[str] = None
    extra: str = ""

    model_config = ConfigDict(populate_by_name=True)

class ColumnsResponse(BaseModel):
    success: bool = True
    columns: List[ColumnInfo]

class DdlResponse(BaseModel):
    success: bool = True
    ddl: str

class DmlResponse(BaseModel):
    success: bool = True
    dml: str
    rowCount: int

class HealthResponse(BaseModel):
    success: bool = True
    connected: bool
    scope: List[str]
