from fastapi import HTTPException
from fastapi import status as httpStatus
from typing import Optional
from pydantic import BaseModel

class ErrorResponse(BaseModel):
    success: bool = False
    message: str
    type: str

class BaseDdlForgeException(HTTPException):
    def __init__(self, statusCode: int, message: str, errorType: str):
        self.errorType = errorType
        self.message = message
        super().__init__(status_code=statusCode, detail=message)

    def toEnvelope(self) -> dict:
        return {"success": False, "message": self.message, "type": self.errorType}

class BadRequestException(BaseDdlForgeException):
    def __init__(self, message: str = "The request was malformed or contained invalid parameters."):
        super().__init__(
            statusCode=httpStatus.HTTP_400_BAD_REQUEST,
            message=message,
            errorType="BadRequestException"
        )

class ValidationException(BadRequestException):
    def __init__(self, message: str):
        super().__init__(
            message=message
        )
        self.errorType = "ValidationException"

class NotConnectedException(BadRequestException):
    def __init__(self, message: str = "Not connected to a database."):
        super().__init__(
            message=message
        )
        self.errorType = "NotConnectedException"

class NotFoundException(BaseDdlForgeException):
    def __init__(self, resourceType: str, identifier: str):
        super().__init__(
            statusCode=httpStatus.HTTP_404_NOT_FOUND,
            message=f"{resourceType} '{identifier}' not found.",
            errorType="NotFoundException"
        )

class NoSuchTableException(NotFoundException):
    def __init__(self, tableName: str, scope: Optional[list] = None):
        super().__init__(
            resourceType="Table",
            identifier=tableName
        )
        if scope:
            self.message = f"Table '{tableName}' not found in schemas: {', '.join(scope)}."
            self.detail = self.message
        self.errorType = "NoSuchTableException"

class InternalServerErrorException(BaseDdlForgeException):
    def __init__(self, message: str = "An unexpected internal server error occurred."):
        super().__init__(
            statusCode=httpStatus.HTTP_500_INTERNAL_SERVER_ERROR,
            message=message,
            errorType="InternalServerErrorException"
        )

class ConnectionFailedException(InternalServerErrorException):
    def __init__(self, message: str, reason: Optional[str] = None):
        fullMessage = message + (f" (Reason: {reason})" if reason else "")
        super().__init__(message=fullMessage)
        self.errorType = "ConnectionFailedException"

class MetadataQueryException(InternalServerErrorException):
    def __init__(self, operation: str, reason: Optional[str] = None):
        fullMessage = f"Catalog query failed while {operation}" + (f": {reason}" if reason else ".")
        super().__init__(message=fullMessage)
        self.operation = operation
        self.errorType = "MetadataQueryException"
