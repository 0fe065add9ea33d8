"""Authentication API endpoints."""
from fastapi import APIRouter, Depends, HTTPException, Request, status
from slowapi import Limiter
from slowapi.util import get_remote_address
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from waterlog.auth import create_access_token, get_password_hash, verify_password
from waterlog.config import settings
from waterlog.database import get_db
from waterlog.models import User
from waterlog.schemas import LoginRequest, SignupRequest, TokenResponse
from waterlog.services.rooms import get_graveyard_room

router = APIRouter(prefix="/api/auth", tags=["auth"])
limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit_enabled)


@router.post("/signup", response_model=TokenResponse, status_code=201)
@limiter.limit(settings.auth_rate_limit)
def signup(request: Request, data: SignupRequest, db: Session = Depends(get_db)):
    """Create a new user account with its graveyard room."""
    email = data.email.lower()
    existing = db.query(User).filter(User.email == email).first()
    if existing:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already exists")

    user = User(email=email, password_hash=get_password_hash(data.password))
    try:
        db.add(user)
        db.flush()
        get_graveyard_room(db, user)
        db.commit()
        db.refresh(user)
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already exists")
    except Exception:
        db.rollback()
        raise

    return {"access_token": create_access_token(user), "token_type": "bearer"}


@router.post("/login", response_model=TokenResponse)
@limiter.limit(settings.auth_rate_limit)
def login(request: Request, data: LoginRequest, db: Session = Depends(get_db)):
    """Login and get access token."""
    user = db.query(User).filter(User.email == data.email.lower()).first()

    if not user or not verify_password(data.password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password"
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account disabled"
        )

    return {"access_token": create_access_token(user), "token_type": "bearer"}
