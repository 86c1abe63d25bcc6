from sqlalchemy import Boolean, Column, String, DateTime, Enum, Uuid
from datetime import datetime
import enum
import uuid
from typing import List
from app.db.base_class import Base


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    SELLER = "seller"
    CLIENT = "client"

    @classmethod
    def values(cls) -> List[str]:
        return [role.value for role in cls]

    @property
    def label(self) -> str:
        return ROLE_LABELS[self]


ROLE_LABELS = {
    UserRole.ADMIN: "Administrator",
    UserRole.SELLER: "Shop",
    UserRole.CLIENT: "Client",
}


class User(Base):
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    phone = Column(String(20), nullable=True)
    address = Column(String(500), nullable=True)
    role = Column(Enum(UserRole), default=UserRole.CLIENT, nullable=False, index=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Invoices reference users with ON DELETE SET NULL; no ORM-side collection so the
    # store applies that policy on user deletion.

    def has_role(self, role: UserRole) -> bool:
        return self.role == role
