import html
import re
from datetime import datetime
from typing import Any

import validators
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .auth import BCRYPT_MAX_BYTES

CUSTOM_CODE_PATTERN = re.compile(r"[A-Za-z0-9_-]+")
# Paths served by the app itself that a custom code must not shadow
RESERVED_CODES = {"api", "docs", "redoc", "health", "openapi.json", "favicon.ico"}


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------- Shared field rules ----------

def _check_url(value: Any) -> str:
    if not isinstance(value, str) or not validators.url(value):
        raise ValueError("Invalid URL format")
    return value


def _check_new_password(value: Any) -> str:
    if not isinstance(value, str) or len(value) < 6:
        raise ValueError("Password must be at least 6 characters long")
    if len(value.encode()) > BCRYPT_MAX_BYTES:
        raise ValueError(f"Password must be at most {BCRYPT_MAX_BYTES} bytes")
    return value


def _check_description(value: Any) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError("Description must be a string")
    return html.escape(value)


def _check_is_active(value: Any) -> bool:
    if not isinstance(value, bool):
        raise ValueError("isActive must be a boolean")
    return value


# ---------- Accounts ----------

class Credentials(CamelModel):
    email: str | None = Field(default=None, validate_default=True)
    password: str | None = Field(default=None, validate_default=True)

    @field_validator("email", mode="before")
    @classmethod
    def email_format(cls, value: Any) -> str:
        if not isinstance(value, str) or not validators.email(value):
            raise ValueError("Invalid email format")
        return value

    @field_validator("password", mode="before")
    @classmethod
    def password_length(cls, value: Any) -> str:
        return _check_new_password(value)


class RegisterIn(Credentials):
    pass


class LoginIn(Credentials):
    pass


class RegisterOut(CamelModel):
    message: str
    user_id: int


class LoginOut(CamelModel):
    message: str
    token: str


# ---------- Links ----------

class LinkCreate(CamelModel):
    original_url: str | None = Field(default=None, validate_default=True)
    custom_short_code: str | None = None
    password: str | None = None
    description: str | None = None
    is_active: bool | None = None

    @field_validator("original_url", mode="before")
    @classmethod
    def original_url_format(cls, value: Any) -> str:
        return _check_url(value)

    @field_validator("custom_short_code", mode="before")
    @classmethod
    def custom_code_shape(cls, value: Any) -> str:
        if not isinstance(value, str) or not 3 <= len(value) <= 10:
            raise ValueError("Custom short code must be between 3 and 10 characters")
        if not CUSTOM_CODE_PATTERN.fullmatch(value):
            raise ValueError("Custom short code may only contain letters, digits, '-' and '_'")
        if value.lower() in RESERVED_CODES:
            raise ValueError("Custom short code is reserved")
        return value

    @field_validator("password", mode="before")
    @classmethod
    def password_length(cls, value: Any) -> str:
        return _check_new_password(value)

    @field_validator("description", mode="before")
    @classmethod
    def description_text(cls, value: Any) -> str | None:
        return _check_description(value)

    @field_validator("is_active", mode="before")
    @classmethod
    def is_active_flag(cls, value: Any) -> bool:
        return _check_is_active(value)


class LinkUpdate(CamelModel):
    """Partial update; only fields present in the payload are applied."""

    original_url: str | None = None
    description: str | None = None
    is_active: bool | None = None
    password: str | None = None

    @field_validator("original_url", mode="before")
    @classmethod
    def original_url_format(cls, value: Any) -> str:
        return _check_url(value)

    @field_validator("description", mode="before")
    @classmethod
    def description_text(cls, value: Any) -> str | None:
        return _check_description(value)

    @field_validator("is_active", mode="before")
    @classmethod
    def is_active_flag(cls, value: Any) -> bool:
        return _check_is_active(value)

    @field_validator("password", mode="before")
    @classmethod
    def password_length(cls, value: Any) -> str | None:
        # Empty or null clears the password
        if value is None or value == "":
            return None
        return _check_new_password(value)


class ShortenOut(CamelModel):
    message: str
    short_url: str
    id: int


class LinkOut(CamelModel):
    id: int
    original_url: str
    short_code: str
    custom_short_code: str | None = None
    description: str | None = None
    is_active: bool
    created_at: datetime | None = None
    requires_password: bool

    model_config = ConfigDict(from_attributes=True)


class LinkUpdateOut(CamelModel):
    message: str
    url: LinkOut


class LinkDetailsOut(CamelModel):
    requires_password: bool
    description: str | None = None
    original_url: str | None = None


class VerifyPasswordIn(CamelModel):
    short_code: str | None = Field(default=None, validate_default=True)
    password: str | None = Field(default=None, validate_default=True)

    @field_validator("short_code", mode="before")
    @classmethod
    def short_code_present(cls, value: Any) -> str:
        if not isinstance(value, str) or not value:
            raise ValueError("Short code is required")
        return value

    @field_validator("password", mode="before")
    @classmethod
    def password_present(cls, value: Any) -> str:
        if not isinstance(value, str) or not value:
            raise ValueError("Password is required")
        return value


class VerifyPasswordOut(CamelModel):
    original_url: str


class MessageOut(CamelModel):
    message: str
