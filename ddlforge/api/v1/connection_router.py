from fastapi import APIRouter, Body, Depends

from ddlforge.db.session import DatabaseSession, getSession
from ddlforge.crud.crud_schema import crudSchema
from ddlforge.models.catalog_models import (
    ConnectRequest, HealthResponse, MessageResponse, SchemaResponse
)
from ddlforge.core.exceptions import (
    BaseDdlForgeException, ErrorResponse, InternalServerErrorException
)

router = APIRouter(
    prefix="/api",
    tags=["Connection"],
    responses={
        400: {"model": ErrorResponse, "description": "Not connected or bad request"},
        500: {"model": ErrorResponse, "description": "Connection or catalog query failure"},
    }
)


@router.post("/connect", response_model=MessageResponse)
async def connectEndpoint(
    request: ConnectRequest = Body(...),
    session: DatabaseSession = Depends(getSession)
):
    try:
        await session.connect(request)
        return MessageResponse(message="Connected to the database.")
    except BaseDdlForgeException as e:
        raise e
    except Exception as e:
        raise InternalServerErrorException(message=str(e))


@router.post("/disconnect", response_model=MessageResponse)
async def disconnectEndpoint(session: DatabaseSession = Depends(getSession)):
    try:
        await session.disconnect()
        return MessageResponse(message="Disconnected from the database.")
    except BaseDdlForgeException as e:
        raise e
    except Exception as e:
        raise InternalServerErrorException(message=str(e))


@router.get("/schema", response_model=SchemaResponse)
async def resolveSchemasEndpoint(session: DatabaseSession = Depends(getSession)):
    try:
        schemaNames = await crudSchema.resolveVisibleSchemas(session)
        return SchemaResponse(schema=schemaNames)
    except BaseDdlForgeException as e:
        raise e
    except Exception as e:
        raise InternalServerErrorException(message=str(e))


@router.get("/health", response_model=HealthResponse)
async def healthEndpoint(session: DatabaseSession = Depends(getSession)):
    return HealthResponse(connected=session.isConnected, scope=list(session.scope))
