"""FastAPI entrypoint for the LiveNotes entry screen."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Callable, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.routers import health, screen
from .config import Settings, load_settings
from .domain.entrystore import EntryStoreGateway, build_entry_store_gateway
from .domain.screen import EntryScreenSession
from .infra.dispatch import AsyncioDispatcher, Dispatcher
from .infra.logging import configure_logging, get_logger
from .infra.notifications import RecordingNotifier

logger = get_logger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    *,
    gateway: Optional[EntryStoreGateway] = None,
    dispatcher_factory: Optional[Callable[[], Dispatcher]] = None,
) -> FastAPI:
    """Instantiate the FastAPI app and register routers.

    The screen session lives exactly as long as the application: it is
    activated when the lifespan starts and its subscription is released when
    the lifespan ends.
    """

    settings = settings or load_settings()
    configure_logging(settings.logging)

    @asynccontextmanager
    async def lifespan(application: FastAPI):
        entry_gateway = gateway or build_entry_store_gateway(settings)
        dispatcher = dispatcher_factory() if dispatcher_factory else AsyncioDispatcher()
        session = EntryScreenSession(
            entry_gateway, dispatcher=dispatcher, notifier=RecordingNotifier()
        )
        session.activate()
        application.state.screen_session = session
        logger.info(
            "screen_session_started",
            extra={"entry_store": settings.store.backend},
        )
        try:
            yield
        finally:
            application.state.screen_session = None
            session.close()
            if isinstance(dispatcher, AsyncioDispatcher):
                await dispatcher.wait_until_idle()
            logger.info("screen_session_closed")

    application = FastAPI(title="LiveNotes API", version="0.1.0", lifespan=lifespan)
    application.state.settings = settings
    application.state.screen_session = None
    allowed_origins = {
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    }
    application.add_middleware(
        CORSMiddleware,
        allow_origins=list(allowed_origins),
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    for router in (health.router, screen.router):
        application.include_router(router)
    return application


app = create_app()
