from sqlalchemy import Column, String, Boolean, Enum as SQLEnum
from stockroom.db.base import BaseModel
from stockroom.models.shared.enums import UserRole

class User(BaseModel):
    __tablename__ = "users"

    username = Column(String(50), unique=True, index=True, nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=True)
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    role = Column(
        SQLEnum(UserRole, values_callable=lambda roles: [r.value for r in roles], name="userrole"),
        nullable=False,
        default=UserRole.STOCK_IN_MANAGER,
    )
    is_active = Column(Boolean, nullable=False, default=True)

    def __repr__(self):
        return f"<User {self.username}>"
