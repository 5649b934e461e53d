# peerfusion/services/auth_service.py
from typing import Optional, Dict, Any
from datetime import datetime, timedelta, timezone
import logging

import jwt
from fastapi import HTTPException, status
from passlib.context import CryptContext
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from peerfusion.config import get_settings
from peerfusion.models.user import User
from peerfusion.schemas.base import MAX_USER_ID

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


class AuthService:
    """Service for registration, login and bearer token handling."""

    def __init__(self, db: Session):
        self.db = db
        self.settings = get_settings()

    def hash_password(self, password: str) -> str:
        return pwd_context.hash(password)

    def verify_password(self, password: str, hashed: str) -> bool:
        return pwd_context.verify(password, hashed)

    def create_access_token(self, user: User) -> str:
        """
        Issue a signed JWT whose subject is the user's id.
        """
        now = datetime.now(timezone.utc)
        payload = {
            "sub": str(user.id),
            "email": user.email,
            "iat": now,
            "exp": now + timedelta(minutes=self.settings.ACCESS_TOKEN_EXPIRE_MINUTES),
        }
        return jwt.encode(payload, self.settings.JWT_SECRET, algorithm=self.settings.JWT_ALGORITHM)

    def verify_token(self, token: str) -> Dict[str, Any]:
        """
        Verify a JWT token and return its payload.
        """
        try:
            payload = jwt.decode(
                token,
                self.settings.JWT_SECRET,
                algorithms=[self.settings.JWT_ALGORITHM],
            )
        except jwt.PyJWTError:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid token",
                headers={"WWW-Authenticate": "Bearer"}
            )

        user_id = payload.get("sub")
        subject = str(user_id) if user_id else ""
        if not (subject.isascii() and subject.isdigit()) or not 0 < int(subject) <= MAX_USER_ID:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid token: missing subject",
                headers={"WWW-Authenticate": "Bearer"}
            )

        return payload

    def register(
        self,
        email: str,
        password: str,
        first_name: str,
        last_name: str
    ) -> User:
        """
        Create a new user. Raises 400 if the email is already taken.
        """
        if self.get_user_by_email(email):
            logger.info(f"Registration rejected, email already in use: {email}")
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="User already exists with this email"
            )

        user = User(
            email=email,
            password=self.hash_password(password),
            first_name=first_name,
            last_name=last_name
        )
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError:
            # Lost a race with a concurrent registration of the same email
            self.db.rollback()
            logger.info(f"Registration rejected on commit, email already in use: {email}")
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="User already exists with this email"
            )
        self.db.refresh(user)

        logger.info(f"User registered: {user.id}")
        return user

    def authenticate(self, email: str, password: str) -> Optional[User]:
        """
        Return the user if the credentials match, otherwise None.
        """
        user = self.get_user_by_email(email)
        if not user or not self.verify_password(password, user.password):
            return None
        return user

    def get_user_by_id(self, user_id: int) -> Optional[User]:
        """
        Retrieve a User record by ID.
        """
        return self.db.query(User).filter(User.id == user_id).first()

    def get_user_by_email(self, email: str) -> Optional[User]:
        """
        Retrieve a User record by email.
        """
        return self.db.query(User).filter(User.email == email).first()
