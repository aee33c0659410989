import logging

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core.config import get_settings, Settings
from .core.logging import init_logging, request_context_middleware
from .core.rate_limit import RateLimiter
from .core.security import CredentialValidator, StaticTokenValidator
from .core import errors
from .db.dal import Database
from .db.memory import MemoryRateBackend
from .db.schema import init_db
from .db.seed import seed_rates
from .routers import convert, rates
from .services.rates.base import RateBackend
from .services.rates.conversion import ConversionResolver
from .services.rates.store import RateStore

logger = logging.getLogger("fxrates")


def build_backend(settings: Settings) -> RateBackend:
    if settings.storage_backend == "memory":
        return MemoryRateBackend()
    try:
        init_db(settings.db_path)  # type: ignore[arg-type]
    except Exception:
        # Failing to init DB is fatal; re-raise after logging
        logger.exception("failed to initialise database at %s", settings.db_path)
        raise
    return Database(settings.db_path)  # type: ignore[arg-type]


def create_app(
    settings_override: Settings | None = None,
    credential_validator: CredentialValidator | None = None,
    rate_limiter: RateLimiter | None = None,
) -> FastAPI:
    """Application factory.

    settings_override: pass an already constructed Settings instance for tests
    to isolate environment (e.g., memory backend). Falls back to cached get_settings().
    credential_validator / rate_limiter: replace the collaborators built from settings
    (e.g., a limiter driven by a fake clock).
    """
    settings = settings_override or get_settings()
    settings.init_post_load()
    # Initialize logging early
    init_logging(debug=settings.debug)

    store = RateStore(build_backend(settings))
    if settings.seed_default_rates:
        added = seed_rates(store)
        logger.info("seeded %s default rates (%s stored)", added, store.count())

    app = FastAPI(
        title=settings.app_name, debug=settings.debug, version=settings.version
    )
    app.state.settings = settings
    app.state.rate_store = store
    app.state.conversion_resolver = ConversionResolver(
        store, max_hops=settings.max_conversion_hops
    )
    app.state.credential_validator = credential_validator or StaticTokenValidator(
        admin_tokens=settings.admin_tokens, user_tokens=settings.user_tokens
    )
    if rate_limiter is None and settings.rate_limit_enabled:
        rate_limiter = RateLimiter(
            max_requests=settings.rate_limit_requests,
            window_seconds=settings.rate_limit_window_seconds,
        )
    app.state.rate_limiter = rate_limiter

    # Middleware (request id / structured logging)
    app.middleware("http")(request_context_middleware)

    # Error handlers
    app.add_exception_handler(errors.ServiceError, errors.service_error_handler)
    app.add_exception_handler(StarletteHTTPException, errors.http_error_handler)
    app.add_exception_handler(RequestValidationError, errors.validation_error_handler)
    app.add_exception_handler(Exception, errors.server_error_handler)

    # Routers
    app.include_router(rates.router)
    app.include_router(convert.router)

    @app.get("/")
    async def root():
        return {"message": settings.app_name, "version": settings.version}

    return app
