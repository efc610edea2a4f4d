from datetime import datetime
from pydantic import BaseModel, Field
from typing import Optional

from ..enums import UserRole


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class SessionUser(BaseModel):
    id: str
    email: Optional[str] = None
    name: Optional[str] = None
    role: UserRole

    class Config:
        from_attributes = True


class SessionResponse(BaseModel):
    user: SessionUser
    access_token: str = Field(..., alias="accessToken")
    expires: datetime

    class Config:
        populate_by_name = True
