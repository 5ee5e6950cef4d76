import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from ddlforge.api.router import apiRouter
from ddlforge.core.config import settings
from ddlforge.core.exceptions import (
    BaseDdlForgeException, InternalServerErrorException, ValidationException
)
from ddlforge.core.logging import setup_logging
from ddlforge.db.session import databaseSession

logger = logging.getLogger(__name__)

app = FastAPI(
    title="ddlforge",
    version="0.1.0",
    description="Reconstructs CREATE TABLE and INSERT statements from a live PostgreSQL catalog.",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.corsOrigins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.on_event("startup")
async def onStartup():
    setup_logging(debug=settings.debug)
    logger.info("ddlforge started")

@app.on_event("shutdown")
async def onShutdown():
    await databaseSession.disconnect()


@app.exception_handler(BaseDdlForgeException)
async def ddlForgeExceptionHandler(request: Request, exc: BaseDdlForgeException):
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.toEnvelope()
    )

@app.exception_handler(RequestValidationError)
async def validationExceptionHandler(request: Request, exc: RequestValidationError):
    errorMessages = []
    for error in exc.errors():
        loc = []
        for item in error["loc"]:
            if isinstance(item, int): # handle list indices
                loc.append(f"[{item}]")
            else:
                loc.append(str(item))

        locPath = ".".join(loc).replace(".[", "[") # body.[0].field -> body[0].field
        errorMessages.append(f"Field '{locPath}': {error['msg']}")

    validationError = ValidationException(message="Validation Error: " + "; ".join(errorMessages))

    return JSONResponse(
        status_code=validationError.status_code,
        content=validationError.toEnvelope()
    )

@app.exception_handler(SQLAlchemyError)
async def sqlalchemyExceptionHandler(request: Request, exc: SQLAlchemyError):
    logger.error("Unhandled database error on %s: %s", request.url.path, exc)
    serverError = InternalServerErrorException(message="A database error occurred.")
    serverError.errorType = type(exc).__name__

    return JSONResponse(
        status_code=serverError.status_code,
        content=serverError.toEnvelope()
    )

@app.exception_handler(Exception)
async def genericExceptionHandler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s", request.url.path)
    serverError = InternalServerErrorException(message="An unexpected internal server error occurred.")
    serverError.errorType = type(exc).__name__

    return JSONResponse(
        status_code=serverError.status_code,
        content=serverError.toEnvelope()
    )

app.include_router(apiRouter)

@app.get("/", include_in_schema=False)
async def root():
    return {"success": True, "message": "ddlforge is running."}
