from typing import Optional
from pydantic import BaseModel

# Largest id the users table can hold (signed 32-bit serial)
MAX_USER_ID = 2**31 - 1


class AckResponse(BaseModel):
    message: str
    updated: Optional[int] = None
