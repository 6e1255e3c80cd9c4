from sqlalchemy import Column, Integer, String, DateTime, Text, Numeric, ForeignKey, CheckConstraint, Enum as SQLEnum
from sqlalchemy.orm import relationship
from stockroom.db.base import BaseModel
from stockroom.models.shared.enums import TransactionType

class StockTransaction(BaseModel):
    """Immutable record of a single stock movement"""
    __tablename__ = 'stock_transactions'

    product_id = Column(Integer, ForeignKey('products.id'), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey('users.id'), nullable=False, index=True)
    type = Column(
        SQLEnum(TransactionType, values_callable=lambda types: [t.value for t in types], name="transactiontype"),
        nullable=False,
    )
    quantity = Column(Numeric(12, 3), nullable=False)
    original_quantity = Column(Numeric(12, 3))
    original_unit = Column(String(50))
    previous_stock = Column(Numeric(12, 3), nullable=False)
    new_stock = Column(Numeric(12, 3), nullable=False)
    transaction_date = Column(DateTime(timezone=True), nullable=False, index=True)
    po_number = Column(String(100))  # stock_in only
    so_number = Column(String(100))  # stock_out only
    remarks = Column(Text)

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_stock_transactions_quantity_positive"),
        CheckConstraint("new_stock >= 0", name="ck_stock_transactions_new_stock_non_negative"),
    )

    # Relationships
    product = relationship("Product", back_populates="transactions")
    user = relationship("User")
