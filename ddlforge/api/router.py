from fastapi import APIRouter
from ddlforge.api.v1 import connection_router, table_router

apiRouter = APIRouter()

apiRouter.include_router(connection_router.router)
apiRouter.include_router(table_router.router)
