from contextlib import asynccontextmanager
import json
import logging
import time
from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from arq import create_pool
from arq.connections import RedisSettings
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from .config import settings
from .database import init_db
from .limiter import limiter
from .routers import compat, health, numerology, profiles, reports, tasks as tasks_router


logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    force=True,
)
logger = logging.getLogger("numero.api")

MAX_BUFFERED_BODY_BYTES = 102400
MAX_PREVIEW_CHARS = 900
# Request and response fields that identify a person.
PERSONAL_FIELDS = frozenset(
    {
        "full_name",
        "first_name",
        "middle_name",
        "last_name",
        "name_1",
        "name_2",
        "birth_date",
        "birth_date_1",
        "birth_date_2",
        "birth_year",
        "birth_month",
        "birth_day",
    }
)


def _mask_personal(value):
    if isinstance(value, dict):
        return {
            key: "***" if key in PERSONAL_FIELDS and item is not None else _mask_personal(item)
            for key, item in value.items()
        }
    if isinstance(value, list):
        return [_mask_personal(item) for item in value]
    return value


def _log_preview(raw: bytes, content_type: str) -> str:
    if not raw:
        return "-"
    if "application/json" not in content_type:
        return f"<{len(raw)} bytes; {content_type or 'unknown'}>"
    try:
        parsed = json.loads(raw)
    except ValueError:
        text = raw.decode("utf-8", errors="replace")
    else:
        if not settings.log_personal_data:
            parsed = _mask_personal(parsed)
        text = json.dumps(parsed, ensure_ascii=False, separators=(",", ":"))
    if len(text) > MAX_PREVIEW_CHARS:
        text = f"{text[:MAX_PREVIEW_CHARS]}... [truncated]"
    return text


def _elapsed_ms(started_at: float) -> float:
    return (time.perf_counter() - started_at) * 1000


class ApiAuditMiddleware(BaseHTTPMiddleware):
    """One log line per API call, tagged with a request id that is echoed back.

    JSON bodies are logged with names and birth dates masked. PDF reports and
    other non-JSON responses pass through unbuffered and are logged by type only.
    """

    async def dispatch(self, request, call_next):
        request_id = request.headers.get("x-request-id") or uuid4().hex[:8]
        started_at = time.perf_counter()
        method = request.method
        target = f"{request.url.path}?{request.url.query}" if request.url.query else request.url.path

        content_length = int(request.headers.get("content-length") or 0)
        request_body = await request.body() if content_length <= MAX_BUFFERED_BODY_BYTES else b""
        request_preview = _log_preview(request_body, request.headers.get("content-type", ""))

        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                "API %s %s | status=500 | t=%.1fms | req=%s | req_id=%s",
                method,
                target,
                _elapsed_ms(started_at),
                request_preview,
                request_id,
            )
            raise

        response.headers["X-Request-ID"] = request_id
        content_type = response.headers.get("content-type", "")
        if "application/json" not in content_type:
            logger.info(
                "API %s %s | status=%s | t=%.1fms | req=%s | resp=<%s> | req_id=%s",
                method,
                target,
                response.status_code,
                _elapsed_ms(started_at),
                request_preview,
                content_type or "empty",
                request_id,
            )
            return response

        response_body = b"".join([chunk async for chunk in response.body_iterator])
        logger.info(
            "API %s %s | status=%s | t=%.1fms | req=%s | resp=%s | req_id=%s",
            method,
            target,
            response.status_code,
            _elapsed_ms(started_at),
            request_preview,
            _log_preview(response_body, content_type),
            request_id,
        )
        return Response(
            content=response_body,
            status_code=response.status_code,
            headers=dict(response.headers),
            media_type=response.media_type,
        )


logging.getLogger("uvicorn.access").disabled = True
logging.getLogger("httpx").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()

    # Auspicious-date scans go to the arq worker when Redis is reachable
    try:
        arq_pool = await create_pool(RedisSettings.from_dsn(settings.redis_url))
        app.state.arq_pool = arq_pool
        logger.info("ARQ pool connected to %s", settings.redis_url)
    except Exception as exc:
        logger.warning("ARQ pool unavailable (Redis down?): %s; scans will run inline", exc)
        app.state.arq_pool = None

    yield

    if getattr(app.state, "arq_pool", None) is not None:
        await app.state.arq_pool.close()


app = FastAPI(title="Numero API", version="0.1.0", lifespan=lifespan)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


app.add_middleware(SlowAPIMiddleware)
app.add_middleware(ApiAuditMiddleware)

if settings.cors_origins():
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins(),
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

app.include_router(health.router)
app.include_router(profiles.router)
app.include_router(numerology.router)
app.include_router(compat.router)
app.include_router(tasks_router.router)
app.include_router(reports.router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.api_host, port=settings.api_port, log_level="info")
