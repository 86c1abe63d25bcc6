from pydantic import BaseModel, EmailStr, Field, ValidationInfo, field_validator
from typing import Optional
from datetime import datetime
from uuid import UUID

from app.core.security import MAX_PASSWORD_BYTES
from app.models.user import UserRole


def _check_email_length(value: Optional[str], limit: int) -> Optional[str]:
    if value is not None and len(value) > limit:
        raise ValueError(f"Email must be at most {limit} characters")
    return value


def _check_password_bytes(value: Optional[str]) -> Optional[str]:
    # bcrypt only reads the first 72 bytes
    if value is not None and len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValueError("Password is too long")
    return value


class UserCreate(BaseModel):
    """Admin-side user creation."""

    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=8)
    phone: Optional[str] = Field(None, max_length=20)
    address: Optional[str] = Field(None, max_length=500)
    role: UserRole
    is_active: bool = True

    @field_validator("email")
    @classmethod
    def validate_email_length(cls, v):
        return _check_email_length(v, 255)

    @field_validator("password")
    @classmethod
    def validate_password_bytes(cls, v):
        return _check_password_bytes(v)


class UserUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(None, min_length=8)
    phone: Optional[str] = Field(None, max_length=20)
    address: Optional[str] = Field(None, max_length=500)
    role: Optional[UserRole] = None
    is_active: Optional[bool] = None

    @field_validator("name", "email", "password", "role", "is_active")
    @classmethod
    def reject_null(cls, v):
        if v is None:
            raise ValueError("This field may not be null")
        return v

    @field_validator("email")
    @classmethod
    def validate_email_length(cls, v):
        return _check_email_length(v, 255)

    @field_validator("password")
    @classmethod
    def validate_password_bytes(cls, v):
        return _check_password_bytes(v)


class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=2, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=6)
    password_confirmation: Optional[str] = Field(None, validate_default=True)
    phone: Optional[str] = Field(None, max_length=20)
    address: Optional[str] = Field(None, max_length=255)
    role: Optional[UserRole] = None

    @field_validator("email")
    @classmethod
    def validate_email_length(cls, v):
        return _check_email_length(v, 100)

    @field_validator("password")
    @classmethod
    def validate_password_bytes(cls, v):
        return _check_password_bytes(v)

    @field_validator("password_confirmation")
    @classmethod
    def validate_confirmation(cls, v, info: ValidationInfo):
        password = info.data.get("password")
        if password is not None and v != password:
            raise ValueError("The password confirmation does not match.")
        return v


class UserLogin(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6)


class UserResponse(BaseModel):
    id: UUID
    name: str
    email: str
    phone: Optional[str] = None
    address: Optional[str] = None
    role: UserRole
    is_active: bool
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class UserSummary(BaseModel):
    """Projection returned by the per-role listings."""

    id: UUID
    name: str
    email: str
    phone: Optional[str] = None
    is_active: bool

    class Config:
        from_attributes = True
