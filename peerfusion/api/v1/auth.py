# peerfusion/api/v1/auth.py
import logging
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError

from peerfusion.api.auth import get_current_user
from peerfusion.api.dependencies import get_service
from peerfusion.models.user import User
from peerfusion.schemas import RegisterRequest, LoginRequest, TokenResponse, UserResponse
from peerfusion.services.auth_service import AuthService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
def register_user(
    request: RegisterRequest,
    auth_service: AuthService = Depends(get_service(AuthService))
):
    """
    Register a new user

    Returns the access token together with the new user's profile
    """
    try:
        user = auth_service.register(
            email=request.email,
            password=request.password,
            first_name=request.first_name,
            last_name=request.last_name
        )
    except SQLAlchemyError:
        logger.exception(f"Registration failed for {request.email}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to register user"
        )

    return {
        "access_token": auth_service.create_access_token(user),
        "token_type": "bearer",
        "user": user
    }


@router.post("/login", response_model=TokenResponse)
def login_user(
    request: LoginRequest,
    auth_service: AuthService = Depends(get_service(AuthService))
):
    """
    Sign in an existing user

    Returns the access token together with the user's profile
    """
    try:
        user = auth_service.authenticate(request.email, request.password)
    except SQLAlchemyError:
        logger.exception(f"Login failed for {request.email}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to login"
        )

    if not user:
        logger.info(f"Invalid credentials for {request.email}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password"
        )

    return {
        "access_token": auth_service.create_access_token(user),
        "token_type": "bearer",
        "user": user
    }


@router.get("/me", response_model=UserResponse)
def read_current_user(current_user: User = Depends(get_current_user)):
    """Get the authenticated user's profile"""
    return current_user
