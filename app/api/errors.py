from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from core.errors import DomainError
from core.logging import get_logger

log = get_logger("http")


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    log.info(
        "domain_error",
        kind=exc.kind,
        status=exc.http_status,
        method=request.method,
        path=request.url.path,
    )
    return JSONResponse(exc.to_dict(), status_code=exc.http_status)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DomainError, domain_error_handler)
