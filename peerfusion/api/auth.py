# peerfusion/api/auth.py
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from peerfusion.database import get_db
from peerfusion.services.auth_service import AuthService
from peerfusion.models.user import User

# Setup security scheme
security = HTTPBearer()


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db)
) -> User:
    """
    Dependency to get the current authenticated user from a bearer JWT.
    """
    auth_service = AuthService(db)

    # Raises 401 on a bad signature, expiry or subject
    payload = auth_service.verify_token(credentials.credentials)

    user = auth_service.get_user_by_id(int(payload["sub"]))
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
            headers={"WWW-Authenticate": "Bearer"}
        )

    return user
