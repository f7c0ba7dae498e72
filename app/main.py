from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi_pagination import add_pagination

from app.config import get_settings
from app.db import build_engine, build_session_factory
from app.infra.logging_config import LoggingConfig, get_logger
from app.routers import inbox_router, system, tickets_router
from app.services.inbox_service import InboxService
from app.services.ticket_manager import TicketManager
from app.stores.local import LocalTicketStore
from app.stores.remote import RemoteTicketStore
from app.stores.smart import SmartTicketStore
from app.workers.analysis import build_analyzer_from_env

logger = get_logger("main")


def build_ticket_manager() -> TicketManager:
    """Wire stores and the analyzer from settings."""
    settings = get_settings()
    local = LocalTicketStore(settings.local_store_path, settings.legacy_issues_path)
    remote: Optional[RemoteTicketStore] = None
    if settings.remote_enabled:
        engine = build_engine(settings.database_url)
        remote = RemoteTicketStore(build_session_factory(engine))
    else:
        logger.info("DATABASE_URL not set; tickets are stored locally only")
    return TicketManager(
        store=SmartTicketStore(local, remote),
        analyzer=build_analyzer_from_env(),
    )


def create_app(
    testing: bool = False,
    ticket_manager: Optional[TicketManager] = None,
    inbox_service: Optional[InboxService] = None,
) -> FastAPI:
    settings = get_settings()
    LoggingConfig(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        manager = app.state.ticket_manager
        if manager is None and not testing:
            manager = build_ticket_manager()
            app.state.ticket_manager = manager
        if manager is not None:
            if not manager.booted:
                source = await manager.boot()
                logger.info("Ticket manager booted from %s", source)
            if app.state.inbox_service is None:
                app.state.inbox_service = InboxService(
                    manager,
                    cursor_path=None if testing else settings.inbox_cursor_path,
                    seen_limit=settings.inbox_seen_limit,
                    hidden_limit=settings.inbox_hidden_limit,
                )
        yield

    app = FastAPI(title=settings.app_name, lifespan=lifespan)
    app.state.ticket_manager = ticket_manager
    app.state.inbox_service = inbox_service

    app.include_router(tickets_router.tickets_router)
    app.include_router(inbox_router.inbox_router)
    app.include_router(system.router)

    add_pagination(app)

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=get_settings().port)
