from datetime import datetime

from pydantic import BaseModel, EmailStr


class UserBase(BaseModel):
    email: EmailStr
    timezone: str = "UTC"


class UserCreate(UserBase):
    pass


class UserUpdate(BaseModel):
    timezone: str | None = None
    device_sources: list[str] | None = None


class UserResponse(UserBase):
    id: int
    created_at: datetime
    device_sources: list[str] = []

    class Config:
        from_attributes = True
