from app.stores.base import TicketStore
from app.stores.local import LocalTicketStore
from app.stores.remote import RemoteTicketStore
from app.stores.smart import SmartTicketStore

__all__ = ["TicketStore", "LocalTicketStore", "RemoteTicketStore", "SmartTicketStore"]
