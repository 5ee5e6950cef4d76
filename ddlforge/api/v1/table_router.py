from fastapi import APIRouter, Depends, Query, Path
from typing import Optional

from ddlforge.db.session import DatabaseSession, getSession
from ddlforge.crud.crud_table import crudTable
from ddlforge.crud.crud_metadata import crudMetadata
from ddlforge.models.catalog_models import (
    ColumnsResponse, DdlResponse, DmlResponse, TablesResponse
)
from ddlforge.core.exceptions import (
    BaseDdlForgeException, ErrorResponse, InternalServerErrorException
)
from ddlforge.services.ddl_renderer import ddlRenderer
from ddlforge.services.dml_renderer import dmlRenderer
from ddlforge.core.config import settings


router = APIRouter(
    prefix="/api/tables",
    tags=["Tables"],
    responses={
        400: {"model": ErrorResponse, "description": "Not connected or bad request"},
        404: {"model": ErrorResponse, "description": "Table not found in scope"},
        500: {"model": ErrorResponse, "description": "Catalog query failure"},
    }
)


@router.get("", response_model=TablesResponse)
async def listTablesEndpoint(
    search: Optional[str] = Query(None, description="Case-insensitive match on table name, column name or column comment"),
    session: DatabaseSession = Depends(getSession)
):
    try:
        snapshot = await session.snapshot()
        tables = await crudTable.listTables(snapshot, search)
        return TablesResponse(tables=tables)
    except BaseDdlForgeException as e:
        raise e
    except Exception as e:
        raise InternalServerErrorException(message=str(e))


@router.get("/{tableName}/columns", response_model=ColumnsResponse)
async def getColumnsEndpoint(
    tableName: str = Path(..., description="Table name"),
    session: DatabaseSession = Depends(getSession)
):
    try:
        snapshot = await session.snapshot()
        columns = await crudMetadata.describeColumns(snapshot, tableName)
        return ColumnsResponse(columns=columns)
    except BaseDdlForgeException as e:
        raise e
    except Exception as e:
        raise InternalServerErrorException(message=str(e))


@router.get("/{tableName}/ddl", response_model=DdlResponse)
async def getDdlEndpoint(
    tableName: str = Path(..., description="Table name"),
    session: DatabaseSession = Depends(getSession)
):
    try:
        snapshot = await session.snapshot()
        metadata = await crudMetadata.collectTableMetadata(snapshot, tableName)
        return DdlResponse(ddl=ddlRenderer.renderCreateTable(metadata))
    except BaseDdlForgeException as e:
        raise e
    except Exception as e:
        raise InternalServerErrorException(message=str(e))


@router.get("/{tableName}/dml", response_model=DmlResponse)
async def getDmlEndpoint(
    tableName: str = Path(..., description="Table name"),
    limit: Optional[int] = Query(None, ge=0, description="Maximum number of rows to export"),
    ordered: bool = Query(False, description="Order rows by primary key for reproducible output"),
    session: DatabaseSession = Depends(getSession)
):
    rowLimit = settings.defaultRowLimit if limit is None else limit
    try:
        snapshot = await session.snapshot()
        schemaName = await crudTable.locateTable(snapshot, tableName)

        orderBy = None
        if ordered:
            orderBy = await crudMetadata.getPrimaryKeyColumns(snapshot, schemaName, tableName)

        rowSet = await crudTable.fetchRows(snapshot, schemaName, tableName, rowLimit, orderBy=orderBy)
        dml = dmlRenderer.renderInserts(rowSet.columns, rowSet, tableName)
        return DmlResponse(dml=dml, rowCount=rowSet.rowCount)
    except BaseDdlForgeException as e:
        raise e
    except Exception as e:
        raise InternalServerErrorException(message=str(e))
