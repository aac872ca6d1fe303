import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import async_sessionmaker

from tixbook.api.routes import auth, ping, tickets
from tixbook.auth.repository import UserRepository
from tixbook.auth.service import AuthService
from tixbook.core.config import Settings, get_settings
from tixbook.core.logging import configure_logging, init_tracer, shutdown_tracer
from tixbook.db.engine import StoreUnavailableError, create_engine, ensure_schema
from tixbook.security.passwords import BcryptHasher
from tixbook.security.tokens import TokenService
from tixbook.tickets.fares import FixedFare
from tixbook.tickets.repository import TicketRepository
from tixbook.tickets.service import BookingService

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    app_logger = configure_logging(settings)
    tracer_provider = init_tracer(settings)

    app.state.logger = app_logger
    app.state.tracer_provider = tracer_provider
    app.state.auth_service = None
    app.state.booking_service = None

    db_engine = create_engine(settings.database_url)
    session_factory = async_sessionmaker(db_engine, expire_on_commit=False)
    user_repository = UserRepository(session_factory)
    ticket_repository = TicketRepository(session_factory)
    try:
        await ensure_schema(db_engine)
    except StoreUnavailableError:
        app_logger.exception("Database unavailable at startup; auth and booking routes will answer 503")
    else:
        app.state.auth_service = AuthService(
            user_repository,
            password_hasher=BcryptHasher(rounds=settings.bcrypt_rounds),
            token_service=TokenService.from_settings(settings),
            default_roles=settings.default_roles,
            operator_usernames=settings.operator_usernames,
        )
        app.state.booking_service = BookingService(
            ticket_repository,
            fare_strategy=FixedFare(settings.fixed_fare),
        )
        app_logger.info("%s started (%s)", settings.app_name, settings.environment)
    try:
        yield
    finally:
        await db_engine.dispose()
        shutdown_tracer(tracer_provider)


async def _store_unavailable_handler(request: Request, exc: StoreUnavailableError) -> JSONResponse:
    logger.error("Store unavailable: %s", exc)
    return JSONResponse(status_code=503, content={"detail": "Storage is temporarily unavailable"})


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    app = FastAPI(title=settings.app_name, lifespan=lifespan)
    app.state.settings = settings
    app.add_exception_handler(StoreUnavailableError, _store_unavailable_handler)
    app.include_router(ping.router)
    app.include_router(auth.router)
    app.include_router(tickets.router)
    return app
