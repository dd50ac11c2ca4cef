"""
User profile endpoints.
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from api.config import get_db
from api.models.models import User as DbUser
from api.schemas.user_schemas import UpdateHandlesRequest, User
from api.utils.auth import get_current_user

user_routes = APIRouter()


@user_routes.patch("/user/handles", response_model=User)
async def update_platform_handles(
    body: UpdateHandlesRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> User:
    """
    Link external platform usernames used by /progress/verify.
    Fields left out are unchanged; an empty string unlinks.
    """
    user = db.get(DbUser, current_user.id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    changes = body.model_dump(exclude_unset=True)
    for field, value in changes.items():
        setattr(user, field, (value or "").strip() or None)
    db.add(user)
    db.commit()
    db.refresh(user)
    return User.model_validate(user)
