from app.models.customer_state import CustomerState

__all__ = ["CustomerState"]
