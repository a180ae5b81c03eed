"""
Leaderboard FastAPI Application.

Wiring for startup, store lifecycle, CORS, request context, error mapping
and the score routes.

Routes
------
- POST /scores   record a score            -> 200 {"status": "ok"}
- GET  /scores   dense-ranked top-N        -> 200 [{name, score, rank}]
- GET  /health   store reachability        -> 200 / 503 {status, version, pool, log_records_dropped}

Error mapping
-------------
- ValidationError      -> 400
- StorageTimeoutError  -> 503 with Retry-After
- StorageError         -> 500
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, List, Optional

from fastapi import APIRouter, FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from leaderboard import __version__
from leaderboard.api.schemas import (
    HealthResponse,
    RankedEntryResponse,
    ScoreSubmission,
    StatusResponse,
)
from leaderboard.core.config.config import Config
from leaderboard.core.database.bootstrap import initialize_store, shutdown_store
from leaderboard.core.database.store import Store
from leaderboard.core.exceptions import StorageError, StorageTimeoutError
from leaderboard.core.logging.logger import LogContext, dropped_log_records, get_logger
from leaderboard.modules.leaderboard.service import LeaderboardService
from leaderboard.modules.shared.exceptions import ValidationError

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
RETRY_AFTER_SECONDS = 1

router = APIRouter(tags=["Leaderboard"])


# ============================================================================
# Dependencies
# ============================================================================


def _service(request: Request) -> LeaderboardService:
    return request.app.state.leaderboard_service


def _store(request: Request) -> Store:
    return request.app.state.store


# ============================================================================
# Routes
# ============================================================================


@router.post("/scores", response_model=StatusResponse)
async def create_score(request: Request, submission: ScoreSubmission) -> StatusResponse:
    await _service(request).submit(submission.name, submission.score)
    return StatusResponse(status="ok")


@router.get("/scores", response_model=List[RankedEntryResponse])
async def get_scores(
    request: Request, limit: Optional[int] = None
) -> List[RankedEntryResponse]:
    if limit is not None and limit > Config.LEADERBOARD_MAX_LIMIT:
        raise ValidationError(
            "limit", f"Cannot exceed {Config.LEADERBOARD_MAX_LIMIT}, got {limit}"
        )

    entries = await _service(request).top_n(limit)
    return [RankedEntryResponse(**entry.to_dict()) for entry in entries]


@router.get("/health", response_model=HealthResponse)
async def health(request: Request, response: Response) -> HealthResponse:
    store = _store(request)
    healthy = await store.health_check()
    if not healthy:
        response.status_code = 503
    return HealthResponse(
        status="ok" if healthy else "unavailable",
        version=__version__,
        pool=store.get_pool_metrics(),
        log_records_dropped=dropped_log_records(),
    )


# ============================================================================
# Exception Handlers
# ============================================================================


async def _validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": exc.to_dict()})


async def _storage_timeout_handler(request: Request, exc: StorageTimeoutError) -> JSONResponse:
    return JSONResponse(
        status_code=503,
        content={"error": exc.to_dict()},
        headers={"Retry-After": str(RETRY_AFTER_SECONDS)},
    )


async def _storage_error_handler(request: Request, exc: StorageError) -> JSONResponse:
    logger.error(
        "Storage failure while handling request",
        extra={
            "path": request.url.path,
            "error_code": exc.error_code,
            "error": exc.message,
        },
    )
    return JSONResponse(status_code=500, content={"error": exc.to_dict()})


# ============================================================================
# Application Factory
# ============================================================================


def create_app(database_path: Optional[str] = None) -> FastAPI:
    """
    Build the FastAPI application.

    The store is opened in the lifespan startup hook (so its connections
    belong to the serving event loop) and closed on shutdown.

    Args:
        database_path: Store file; defaults to Config.DATABASE_PATH
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        store = await initialize_store(database_path, verify_health=True)
        app.state.store = store
        app.state.leaderboard_service = LeaderboardService(store)
        logger.info("API ready", extra={"path": store.path})
        try:
            yield
        finally:
            await shutdown_store(store)

    app = FastAPI(
        title="Leaderboard",
        description="Submit named scores and read a dense-ranked top-N view.",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=Config.CORS_ALLOW_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
        allow_credentials=False,
    )

    @app.middleware("http")
    async def request_context(request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER)
        async with LogContext(
            component="api",
            operation=f"{request.method} {request.url.path}",
            request_id=request_id,
        ) as ctx:
            response = await call_next(request)
            response.headers[REQUEST_ID_HEADER] = ctx.context["request_id"]
            return response

    app.add_exception_handler(ValidationError, _validation_error_handler)
    app.add_exception_handler(StorageTimeoutError, _storage_timeout_handler)
    app.add_exception_handler(StorageError, _storage_error_handler)

    app.include_router(router)

    return app
