from sqlalchemy import Column, Integer, String, Boolean, Numeric, CheckConstraint
from sqlalchemy.orm import relationship
from stockroom.db.base import BaseModel

class Product(BaseModel):
    __tablename__ = 'products'

    name = Column(String(255), nullable=False, index=True)
    unit = Column(String(50), nullable=False)  # KG, Litre, Pieces, etc.
    opening_stock = Column(Numeric(12, 3), nullable=False, default=0)
    current_stock = Column(Numeric(12, 3), nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    version_id = Column(Integer, nullable=False)

    __table_args__ = (
        CheckConstraint("current_stock >= 0", name="ck_products_current_stock_non_negative"),
        CheckConstraint("opening_stock >= 0", name="ck_products_opening_stock_non_negative"),
    )

    # Every UPDATE is guarded by the version the row was read at
    __mapper_args__ = {"version_id_col": version_id}

    # Relationships
    transactions = relationship("StockTransaction", back_populates="product")
    weekly_stock_plans = relationship("WeeklyStockPlan", back_populates="product")
    low_stock_alerts = relationship("LowStockAlert", back_populates="product")

    def __repr__(self):
        return f"<Product {self.name} ({self.current_stock} {self.unit})>"
