# peerfusion/api/dependencies.py
from typing import Type, Callable
from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from peerfusion.database import get_db
from peerfusion.schemas.base import MAX_USER_ID
from peerfusion.websockets.connection_manager import ConnectionManager


def get_service(service_class: Type) -> Callable:
    """Factory function to create service dependencies with DB injection"""
    def _get_service(db: Session = Depends(get_db)):
        return service_class(db)
    return _get_service


def get_connection_manager(request: Request) -> ConnectionManager:
    """The application's real-time connection manager"""
    return request.app.state.connection_manager


def parse_user_id(raw: str, detail: str = "Invalid user ID") -> int:
    """
    Parse a path identifier that must be a positive integer within the id column range.
    Raises 400 otherwise.
    """
    raw = raw.strip()
    if not (raw.isascii() and raw.isdigit()) or not 0 < int(raw) <= MAX_USER_ID:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail
        )
    return int(raw)
