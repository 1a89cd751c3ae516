from datetime import datetime
from pydantic import BaseModel, ConfigDict, EmailStr
from typing import Any, Dict, Optional

class UserBase(BaseModel):
    google_id: str
    email: Optional[EmailStr] = None
    name: Optional[str] = None
    picture: Optional[str] = None

class User(UserBase):
    onboarding_completed: bool = False
    onboarding_data: Optional[Dict[str, Any]] = None
    personalized_prompt: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class Token(BaseModel):
    access_token: str
    token_type: str

class TokenData(BaseModel):
    """토큰에서 검증된 신원 클레임"""
    id: str
    email: Optional[str] = None
    name: Optional[str] = None
    picture: Optional[str] = None

class AuthUser(BaseModel):
    id: str
    email: Optional[str] = None
    name: Optional[str] = None
    picture: Optional[str] = None

class AuthStatus(BaseModel):
    authenticated: bool
    has_onboarding: bool = False
    user: Optional[AuthUser] = None
