"""
db/models/sales_record.py

Persisted canonical sales record, scoped to one user.
"""

from __future__ import annotations

import datetime as dt

from sqlalchemy import Date, Float, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.domain.sales import CanonicalSalesRecord
from db.base import Base, TimestampMixin


class SalesRecordRow(TimestampMixin, Base):
    __tablename__ = "sales_records"

    pk: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(255), nullable=False)
    record_id: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        comment="Repository-assigned id, unique per user",
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, comment="Insertion order")
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    product_name: Mapped[str] = mapped_column(Text, nullable=False)
    product_id: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(Text, nullable=False)
    region: Mapped[str] = mapped_column(Text, nullable=False)
    sales_channel: Mapped[str] = mapped_column(String(32), nullable=False)
    customer_type: Mapped[str] = mapped_column(String(32), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_price: Mapped[float] = mapped_column(Float, nullable=False)
    revenue: Mapped[float] = mapped_column(Float, nullable=False)
    cost_price: Mapped[float] = mapped_column(Float, nullable=False)
    vat: Mapped[float] = mapped_column(Float, nullable=False)
    discount: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    shipping_status: Mapped[str] = mapped_column(String(32), nullable=False)

    __table_args__ = (
        Index("ix_sales_records_user_id", "user_id"),
        Index("ux_sales_records_user_record", "user_id", "record_id", unique=True),
        Index("ix_sales_records_user_date", "user_id", "date"),
    )

    @classmethod
    def from_record(cls, user_id: str, record: CanonicalSalesRecord, position: int) -> SalesRecordRow:
        return cls(
            user_id=user_id,
            record_id=record.id,
            position=position,
            date=record.date,
            product_name=record.product_name,
            product_id=record.product_id,
            category=record.category,
            region=record.region,
            sales_channel=record.sales_channel,
            customer_type=record.customer_type,
            quantity=record.quantity,
            unit_price=record.unit_price,
            revenue=record.revenue,
            cost_price=record.cost_price,
            vat=record.vat,
            discount=record.discount,
            shipping_status=record.shipping_status,
        )

    def to_record(self) -> CanonicalSalesRecord:
        return CanonicalSalesRecord(
            id=self.record_id,
            date=self.date,
            product_name=self.product_name,
            product_id=self.product_id,
            category=self.category,
            region=self.region,
            sales_channel=self.sales_channel,
            customer_type=self.customer_type,
            quantity=self.quantity,
            unit_price=self.unit_price,
            revenue=self.revenue,
            cost_price=self.cost_price,
            vat=self.vat,
            discount=self.discount,
            shipping_status=self.shipping_status,
        )

    def __repr__(self) -> str:
        return f"<SalesRecordRow user={self.user_id!r} id={self.record_id!r} product={self.product_name!r}>"
