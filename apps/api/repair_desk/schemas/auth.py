from datetime import datetime

from pydantic import BaseModel, EmailStr, Field, field_validator

from ..models.user import UserRole


def _password_bytes_le_72(v: str) -> str:
    if len(v.encode("utf-8")) > 72:
        raise ValueError("Password must be <= 72 bytes (bcrypt limit).")
    return v


class RegisterIn(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(min_length=6, max_length=72)
    department: str | None = Field(default=None, max_length=100)
    phone_number: str | None = Field(default=None, max_length=32)
    line_id: str | None = Field(default=None, max_length=64)
    # accepted for compatibility with older clients; registration always yields USER
    role: str | None = None

    @field_validator("password")
    @classmethod
    def register_password_bytes_le_72(cls, v: str) -> str:
        return _password_bytes_le_72(v)


class RegisterOut(BaseModel):
    message: str
    user_id: int
    role: UserRole


class LoginIn(BaseModel):
    email: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1, max_length=72)

    @field_validator("password")
    @classmethod
    def login_password_bytes_le_72(cls, v: str) -> str:
        return _password_bytes_le_72(v)


class TokenOut(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user_id: int
    role: UserRole
    message: str


class LineAuthUrlOut(BaseModel):
    url: str
    state: str


class ProfileOut(BaseModel):
    id: int
    name: str | None = None
    email: str
    role: UserRole
    department: str | None = None
    phone_number: str | None = None
    line_id: str | None = None
    created_at: datetime | None = None

    class Config:
        from_attributes = True


class ProfileUpdateIn(BaseModel):
    name: str | None = Field(default=None, max_length=100)
    department: str | None = Field(default=None, max_length=100)
    phone_number: str | None = Field(default=None, max_length=32)
    line_id: str | None = Field(default=None, max_length=64)
