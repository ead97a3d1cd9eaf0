import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response
from starlette.middleware.trustedhost import TrustedHostMiddleware

from matchday.api.router import router
from matchday.core.config import settings
from matchday.core.errors import MatchdayError, SelectionFailure
from matchday.core.logging_config import setup_logging

setup_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Matchday - match lifecycle & ratings",
    version="0.2.0",
)

allowed_hosts = [h.strip() for h in settings.ALLOWED_HOSTS.split(",") if h.strip()]
if not allowed_hosts:
    allowed_hosts = ["*"]
app.add_middleware(TrustedHostMiddleware, allowed_hosts=allowed_hosts)


@app.middleware("http")
async def security_headers_middleware(request: Request, call_next):
    response: Response = await call_next(request)
    if settings.SECURITY_HEADERS_ENABLED:
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        if settings.ENV != "dev":
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
    return response


@app.exception_handler(MatchdayError)
async def matchday_error_handler(request: Request, exc: MatchdayError):
    if isinstance(exc, SelectionFailure):
        # already logged where it was raised; callers only get the generic failure
        return JSONResponse(status_code=exc.status_code, content={"code": exc.code, "detail": exc.default_message})
    logger.debug("%s %s -> %s: %s", request.method, request.url.path, exc.code, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"code": exc.code, "detail": exc.message})

app.include_router(router)

@app.get("/health")
def health():
    return {"ok": True}
