"""
Auth Module - Dependencies
===========================
FastAPI dependencies identifying the current user.

The storefront's "login" is only a `user_id` cookie naming a record in the
user directory. There is no token and no verification.
"""

from fastapi import Request, Depends, HTTPException, status
from sqlalchemy.orm import Session

from config.database import get_db
from modules.user.service import user_service


def get_current_active_user(request: Request, db: Session = Depends(get_db)):
    """Returns the User named by the user_id cookie, or None."""
    user_id = request.cookies.get("user_id")
    if not user_id:
        return None
    return user_service.get_by_id(db, user_id)


def require_login(user=Depends(get_current_active_user)):
    """Require any known user. Raises 401 if not logged in."""
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="login_required")
    return user


def require_student(user=Depends(get_current_active_user)):
    """Only allow students. Raises 401 otherwise."""
    if not user or not user.is_student:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="login_required")
    return user


def require_admin(user=Depends(get_current_active_user)):
    """Only allow pantry staff. Raises 403 otherwise."""
    if not user or not user.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")
    return user
