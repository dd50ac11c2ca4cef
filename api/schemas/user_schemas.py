from pydantic import BaseModel, ConfigDict
from typing import Optional

class User(BaseModel):
    """Authenticated account as seen by routes. Never carries the password hash."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    name: Optional[str] = None
    role: str = "STUDENT"
    points: int = 0
    streak: int = 0
    is_blocked: bool = False
    leetcode_username: Optional[str] = None
    gfg_username: Optional[str] = None

class UpdateHandlesRequest(BaseModel):
    leetcode_username: Optional[str] = None
    gfg_username: Optional[str] = None
