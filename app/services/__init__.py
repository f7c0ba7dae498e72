from app.services.legacy_migration import migrate_legacy_issues
from app.services.ticket_manager import TicketManager
from app.services.ticket_reconciler import TicketReconciler, fold

__all__ = [
    "TicketManager",
    "TicketReconciler",
    "fold",
    "migrate_legacy_issues",
]
