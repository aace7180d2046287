
from typing import Optional

from fastapi import Request, status
from fastapi.responses import JSONResponse

from clasificados.schemas.common import ErrorResponse


class ClasificadosError(Exception):
    """Base for every failure the listing core reports to a caller."""

    kind = "Error"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.detail = detail


class InvalidInput(ClasificadosError):
    kind = "InvalidInput"


class InvalidIdentity(ClasificadosError):
    kind = "InvalidIdentity"


class MissingPhoto(ClasificadosError):
    kind = "MissingPhoto"


class MinimumPhotoViolation(ClasificadosError):
    kind = "MinimumPhotoViolation"


class QuotaExceeded(ClasificadosError):
    kind = "QuotaExceeded"


class DuplicateListing(ClasificadosError):
    kind = "DuplicateListing"
    status_code = status.HTTP_409_CONFLICT


class NotFound(ClasificadosError):
    kind = "NotFound"
    status_code = status.HTTP_404_NOT_FOUND


class Forbidden(ClasificadosError):
    kind = "Forbidden"
    status_code = status.HTTP_403_FORBIDDEN


class Unauthenticated(ClasificadosError):
    kind = "Unauthenticated"
    status_code = status.HTTP_401_UNAUTHORIZED


class StorageFailure(ClasificadosError):
    kind = "StorageFailure"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


async def clasificados_error_handler(request: Request, exc: ClasificadosError) -> JSONResponse:
    settings = request.app.state.settings
    body = ErrorResponse(
        error=exc.kind,
        message=exc.message,
        detail=exc.detail if settings.is_development else None,
    )
    headers = {"WWW-Authenticate": "TelegramInitData"} if isinstance(exc, Unauthenticated) else None
    return JSONResponse(
        status_code=exc.status_code,
        content=body.model_dump(exclude_none=True),
        headers=headers,
    )
