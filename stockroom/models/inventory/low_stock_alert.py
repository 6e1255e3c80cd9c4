from sqlalchemy import Column, Integer, DateTime, Boolean, Numeric, ForeignKey, Index, Enum as SQLEnum, text
from sqlalchemy.orm import relationship
from stockroom.db.base import BaseModel
from stockroom.models.shared.enums import AlertLevel

class LowStockAlert(BaseModel):
    __tablename__ = 'low_stock_alerts'

    product_id = Column(Integer, ForeignKey('products.id'), nullable=False, index=True)
    weekly_plan_id = Column(Integer, ForeignKey('weekly_stock_plans.id'), nullable=False, index=True)
    # Snapshots taken when the alert is raised
    current_stock = Column(Numeric(12, 3), nullable=False)
    planned_quantity = Column(Numeric(12, 3), nullable=False)
    alert_level = Column(
        SQLEnum(AlertLevel, values_callable=lambda levels: [l.value for l in levels], name="alertlevel"),
        nullable=False,
        default=AlertLevel.LOW,
    )
    is_resolved = Column(Boolean, nullable=False, default=False)
    alert_date = Column(DateTime(timezone=True), nullable=False)
    resolved_at = Column(DateTime(timezone=True))

    __table_args__ = (
        # One open alert per (product, plan)
        Index(
            "uq_low_stock_alerts_open_per_plan",
            "product_id",
            "weekly_plan_id",
            unique=True,
            postgresql_where=text("is_resolved = false"),
            sqlite_where=text("is_resolved = 0"),
        ),
    )

    # Relationships
    product = relationship("Product", back_populates="low_stock_alerts")
    weekly_plan = relationship("WeeklyStockPlan", back_populates="low_stock_alerts")
