import logging
import time

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError

from .config import get_settings
from .db import close_mongo_connection, connect_to_mongo, is_connected
from .errors import Internal, ServiceError, ValidationFailed
from .redis_bus import stop as redis_bus_stop
from .repositories.exceptions import RepositoryError
from .routers import auth, chats, discovery, matches, users

LOGGER = logging.getLogger("uvicorn.error")

app = FastAPI(title="Kindred API")
settings = get_settings()

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allow_origins,
    allow_methods=["*"],
    allow_headers=["*"],
    allow_credentials=True,
)
app.add_middleware(GZipMiddleware, minimum_size=512)


@app.middleware("http")
async def log_slow_requests(request: Request, call_next):
    t0 = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - t0) * 1000
    if elapsed_ms >= get_settings().slow_request_ms:
        LOGGER.warning(
            "Slow request %s %s %dms status=%s",
            request.method,
            request.url.path,
            int(elapsed_ms),
            response.status_code,
        )
    return response


@app.exception_handler(ServiceError)
async def handle_service_error(_request: Request, exc: ServiceError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def handle_request_validation(_request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    message = errors[0].get("msg", "invalid input") if errors else "invalid input"
    error = ValidationFailed(str(message))
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


@app.exception_handler(RepositoryError)
@app.exception_handler(PyMongoError)
async def handle_store_error(request: Request, exc: Exception) -> JSONResponse:
    LOGGER.error("Store error on %s %s", request.method, request.url.path, exc_info=exc)
    error = Internal("server error")
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


@app.on_event("startup")
async def startup():
    await connect_to_mongo()
    if settings.redis_pubsub_enabled:
        LOGGER.info("Match events publish to %s.matches", settings.redis_pubsub_prefix)
    else:
        LOGGER.info("Redis pub/sub disabled; match events are not published")


@app.on_event("shutdown")
async def shutdown():
    await close_mongo_connection()
    await redis_bus_stop()


app.include_router(auth.router, prefix="/api")
app.include_router(users.router, prefix="/api")
app.include_router(discovery.router, prefix="/api")
app.include_router(matches.router, prefix="/api")
app.include_router(chats.router, prefix="/api")


@app.get("/")
async def root():
    return {"status": "kindred-api-ok"}


@app.get("/api/health/db")
async def db_health():
    return {
        "mongo": "connected" if is_connected() else "disconnected",
        "db": str(get_settings().mongo_db),
    }
