from sqlalchemy import Column, Integer, String, Boolean, Text, Numeric, Date, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from stockroom.db.base import BaseModel

class WeeklyStockPlan(BaseModel):
    __tablename__ = 'weekly_stock_plans'

    product_id = Column(Integer, ForeignKey('products.id'), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey('users.id'), nullable=False)
    planned_quantity = Column(Numeric(12, 3), nullable=False)
    unit = Column(String(50), nullable=False)
    week_start_date = Column(Date, nullable=False, index=True)
    week_end_date = Column(Date, nullable=False, index=True)
    is_active = Column(Boolean, nullable=False, default=True)
    notes = Column(Text)

    __table_args__ = (
        CheckConstraint("planned_quantity > 0", name="ck_weekly_stock_plans_quantity_positive"),
        CheckConstraint("week_start_date <= week_end_date", name="ck_weekly_stock_plans_date_range"),
    )

    # Relationships
    product = relationship("Product", back_populates="weekly_stock_plans")
    user = relationship("User")
    low_stock_alerts = relationship("LowStockAlert", back_populates="weekly_plan")
