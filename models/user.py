from enum import Enum

from models.base_model import Base, BaseModel
from sqlalchemy import Column, String, Boolean, DateTime
from sqlalchemy.types import Enum as SAEnum
from sqlalchemy.orm import relationship


class UserRole(str, Enum):
    USER = "user"
    PARTNER = "partner"
    ADMIN = "admin"


class User(BaseModel, Base):
    __tablename__ = "users"
    name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(SAEnum(UserRole, name="user_role", native_enum=False,
                         values_callable=lambda e: [m.value for m in e]),
                  nullable=False, default=UserRole.USER)
    is_active = Column(Boolean, nullable=False, default=True)
    last_login_at = Column(DateTime(timezone=True), nullable=True)

    establishments = relationship("Establishment", back_populates="partner", passive_deletes=True)
