"""Re-export all models so Base.metadata sees them."""

from intake.db.models.customer_request import CustomerRequestRecord

__all__ = [
    "CustomerRequestRecord",
]
