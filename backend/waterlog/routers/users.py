"""Current user profile, password and watering settings."""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from waterlog.auth import get_current_user, get_password_hash, verify_password
from waterlog.database import get_db
from waterlog.models import User
from waterlog.schemas import ChangePasswordRequest, UserResponse, UserSettingsUpdate
from waterlog.services.plant_state import effective_settings
from waterlog.services.scheduling import resolve_settings

router = APIRouter(prefix="/api/user", tags=["user"])


def _user_response(user: User) -> dict:
    return {
        "id": user.id,
        "email": user.email,
        "settings": user.settings,
        "effective_settings": effective_settings(user).as_dict(),
    }


@router.get("", response_model=UserResponse)
def get_me(current_user: User = Depends(get_current_user)):
    """Get the authenticated user with stored and effective settings."""
    return _user_response(current_user)


@router.patch("/settings", response_model=UserResponse)
def update_settings(
    data: UserSettingsUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Update smoothing parameters; values must lie strictly between 0 and 1."""
    merged = dict(current_user.settings or {})
    merged.update(data.model_dump(exclude_none=True))
    # Raises SettingsValidationError (422) before anything is stored
    resolve_settings(merged)

    current_user.settings = merged
    try:
        db.commit()
        db.refresh(current_user)
    except Exception:
        db.rollback()
        raise
    return _user_response(current_user)


@router.post("/change-password")
def change_password(
    data: ChangePasswordRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Change the password after verifying the old one."""
    if not verify_password(data.old_password, current_user.password_hash):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Incorrect old password")

    current_user.password_hash = get_password_hash(data.new_password)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    return {"message": "Password updated successfully"}
