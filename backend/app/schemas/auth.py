"""
LoveAlbum Backend — Admin Auth Schemas
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    admin_account: str = Field(default="")
    password: str = Field(default="")


class AdminInfo(BaseModel):
    admin_account: str
    last_login: Optional[datetime] = None

    model_config = {"from_attributes": True}


class LoginResponse(BaseModel):
    success: bool = True
    message: str = "Login successful"
    admin: AdminInfo


class VerifyResponse(BaseModel):
    success: bool = True
    admin: AdminInfo
