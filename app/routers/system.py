from fastapi import APIRouter, Depends
from pydantic import BaseModel

from app.config import get_settings
from app.routers.utils.dependencies import get_ticket_manager
from app.services.ticket_manager import TicketManager

router = APIRouter(
    prefix="/system",
    tags=["system"],
    responses={404: {"description": "Not found"}},
)


class HealthRead(BaseModel):
    status: str
    app: str
    environment: str
    booted: bool
    remote_enabled: bool
    ticket_count: int


@router.get("/health", response_model=HealthRead)
def get_health(manager: TicketManager = Depends(get_ticket_manager)) -> HealthRead:
    """Liveness plus a summary of where tickets are stored."""
    s = get_settings()
    return HealthRead(
        status="ok",
        app=s.app_name,
        environment=s.environment,
        booted=manager.booted,
        remote_enabled=manager.store.remote_enabled,
        ticket_count=len(manager.list_tickets()),
    )
