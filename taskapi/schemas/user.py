"""User request/response schemas - API contract and validation."""

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field, field_validator

# bcrypt only reads the first 72 bytes of a password
BCRYPT_MAX_BYTES = 72


class UserBase(BaseModel):
    email: EmailStr
    full_name: str = Field(..., min_length=1, max_length=255)


class UserCreate(UserBase):
    password: str = Field(..., min_length=6)
    role_id: int | None = Field(default=None, gt=0)

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, value: str) -> str:
        # Longer input would be silently truncated when hashed
        if len(value.encode("utf-8")) > BCRYPT_MAX_BYTES:
            raise ValueError(f"Password must be at most {BCRYPT_MAX_BYTES} bytes")
        return value


class UserUpdate(BaseModel):
    """Partial update: only non-null fields are applied."""

    email: EmailStr | None = None
    full_name: str | None = Field(default=None, min_length=1, max_length=255)
    role_id: int | None = Field(default=None, gt=0)


class UserRead(UserBase):
    """Outward representation. Never carries the password hash."""

    id: int
    role_id: int
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
