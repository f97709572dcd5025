"""Auth: JWT, password hashing and room membership checks."""
import os
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt
from passlib.context import CryptContext
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from roomsplit.database import get_db
from roomsplit.models import Membership, MemberRole, User

SECRET_KEY = os.getenv("SECRET_KEY", "change-me-in-production")
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_DAYS = 7

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")
security = HTTPBearer(auto_error=False)


def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def create_access_token(user_id: int, expires_delta: Optional[timedelta] = None) -> str:
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(days=ACCESS_TOKEN_EXPIRE_DAYS))
    return jwt.encode({"sub": str(user_id), "exp": expire}, SECRET_KEY, algorithm=ALGORITHM)


def decode_access_token(token: str) -> Optional[int]:
    """User id from a token, or None if it is invalid or expired."""
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        return None
    sub = payload.get("sub")
    return int(sub) if sub is not None else None


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    user_id = decode_access_token(credentials.credentials) if credentials else None
    user = db.query(User).filter(User.id == user_id).first() if user_id is not None else None
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )
    return user


def get_membership(db: Session, room_id: int, user_id: int) -> Optional[Membership]:
    return (
        db.query(Membership)
        .filter(Membership.room_id == room_id, Membership.user_id == user_id)
        .first()
    )


def require_membership(db: Session, room_id: int, user: User) -> Membership:
    membership = get_membership(db, room_id, user.id)
    if not membership:
        raise HTTPException(status_code=403, detail="Not a member of this room")
    return membership


def require_admin(db: Session, room_id: int, user: User, action: str) -> Membership:
    membership = require_membership(db, room_id, user)
    if membership.role != MemberRole.ADMIN:
        raise HTTPException(status_code=403, detail=f"Only room admins can {action}")
    return membership
