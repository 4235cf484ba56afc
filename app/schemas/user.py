from datetime import datetime

from pydantic import BaseModel, ConfigDict, StrictStr, field_validator


class UserCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    username: StrictStr
    password: StrictStr

    @field_validator("username")
    @classmethod
    def username_length(cls, v: str) -> str:
        v = v.strip()
        if not 3 <= len(v) <= 30:
            raise ValueError("username must be between 3 and 30 characters")
        return v

    @field_validator("password")
    @classmethod
    def password_bounds(cls, v: str) -> str:
        """Require at least 6 characters and at most bcrypt's 72-byte limit (UTF-8)."""
        if len(v) < 6:
            raise ValueError("password must be at least 6 characters")
        if len(v.encode("utf-8")) > 72:
            raise ValueError("password too long: must be at most 72 bytes when UTF-8 encoded")
        return v


class UserLogin(BaseModel):
    model_config = ConfigDict(extra="forbid")

    username: StrictStr
    password: StrictStr


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    username: str
    created_at: datetime
