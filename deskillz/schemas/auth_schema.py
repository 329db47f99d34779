# deskillz/schemas/auth_schema.py

from typing import Any, Dict, Optional
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from deskillz.schemas.score_schema import CamelModel


class TokenPair(CamelModel):
    """Access/refresh token pair as issued by the backend"""
    access_token: str
    refresh_token: Optional[str] = None


class AuthResult(BaseModel):
    """Result of a login, registration or social sign-in"""
    user: Dict[str, Any]
    tokens: TokenPair
    is_new_user: bool = False


class EmailLoginPayload(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class EmailRegisterPayload(BaseModel):
    """Schema for registering with email, password and username"""
    email: EmailStr
    password: str = Field(..., min_length=8)
    username: str = Field(..., min_length=3, max_length=20)
    
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "email": "player@example.com",
                "password": "strongpassword123",
                "username": "cool_player"
            }
        }
    )


class SocialAuthPayload(CamelModel):
    """Social provider sign-in (google, apple, facebook)"""
    provider: str
    id_token: str
