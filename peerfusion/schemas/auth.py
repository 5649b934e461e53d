from pydantic import BaseModel, EmailStr, Field

from peerfusion.schemas.users import UserResponse


class RegisterRequest(BaseModel):
    """Request for user registration"""
    email: EmailStr
    password: str = Field(..., min_length=8)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)


class LoginRequest(BaseModel):
    """Request for user login"""
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    """Response with the access token and the authenticated user"""
    access_token: str
    token_type: str = "bearer"
    user: UserResponse
