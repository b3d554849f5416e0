"""Store settings models: delivery pricing."""

from datetime import datetime
from decimal import Decimal

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from sqlalchemy import JSON, DateTime, Integer, Numeric, Text
from sqlalchemy.orm import Mapped, mapped_column

DEFAULT_DELIVERY_TYPES = {
    "local": {"name": "Local Delivery", "cost": 5},
    "express": {"name": "Express Delivery", "cost": 10},
    "overseas": {"name": "Overseas Delivery", "cost": 20},
}
DEFAULT_FREE_DELIVERY_THRESHOLD = Decimal("100")


class DeliverySettings(Base):
    """Single-row delivery pricing table read at checkout."""

    __tablename__ = "store_delivery_settings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, default=1)

    # {"local": {"name": "Local Delivery", "cost": 5}, ...}
    delivery_types: Mapped[dict] = mapped_column(
        JSON, default=lambda: dict(DEFAULT_DELIVERY_TYPES), nullable=False
    )
    free_delivery_threshold: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), default=DEFAULT_FREE_DELIVERY_THRESHOLD, nullable=False
    )
    bank_account_details: Mapped[str] = mapped_column(
        Text, default="", server_default="", nullable=False
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    def __repr__(self):
        return f"<DeliverySettings threshold={self.free_delivery_threshold}>"
