from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from todo_manager.utils.sanitization import sanitize_string, optional_text, normalize_email


class UserBase(BaseModel):
    username: str = Field(..., min_length=1, max_length=50)
    email: EmailStr
    first_name: str | None = None
    last_name: str | None = None

    @field_validator("username", mode="before")
    @classmethod
    def sanitize(cls, v):
        return sanitize_string(v)

    @field_validator("first_name", "last_name", mode="before")
    @classmethod
    def sanitize_names(cls, v):
        return optional_text(v)

    @field_validator("email", mode="before")
    @classmethod
    def lower_email(cls, v):
        return normalize_email(v)


class UserCreate(UserBase):
    password: str = Field(..., repr=False)


class UserUpdate(BaseModel):
    email: EmailStr | None = None
    first_name: str | None = None
    last_name: str | None = None

    @field_validator("first_name", "last_name", mode="before")
    @classmethod
    def sanitize_names(cls, v):
        return optional_text(v)

    @field_validator("email", mode="before")
    @classmethod
    def lower_email(cls, v):
        return normalize_email(v)


class User(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int | None = None
    username: str
    email: str
    password_hash: str = Field(..., repr=False)
    first_name: str | None = None
    last_name: str | None = None
    active: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None
    last_login_at: datetime | None = None

    @classmethod
    def from_storage(cls, **fields):
        return cls.model_construct(**fields)

    @property
    def full_name(self) -> str:
        parts = [p for p in (self.first_name, self.last_name) if p]
        return " ".join(parts) or self.username
