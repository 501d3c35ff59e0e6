import os
from typing import Optional
from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import jwt, JWTError
from sqlmodel import Session, select

from app.models.user import User
from app.utils.errors import NotFoundError

ALGORITHM = "HS256"

bearer_scheme_optional = HTTPBearer(auto_error=False)


def decode_token(token: str) -> dict:
    return jwt.decode(token, os.getenv("JWT_SECRET"), algorithms=[ALGORITHM])


def get_current_user_optional(token: HTTPAuthorizationCredentials = Depends(bearer_scheme_optional)):
    if not token:
        return None

    try:
        return decode_token(token.credentials)
    except JWTError:
        return None

bearer_scheme_required = HTTPBearer(auto_error=True)

def get_current_user_required(token: HTTPAuthorizationCredentials = Depends(bearer_scheme_required)):
    try:
        return decode_token(token.credentials)
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid or expired token")


def find_db_user(session: Session, current_user) -> Optional[User]:
    if not current_user:
        return None

    return session.exec(
        select(User).where(User.public_id == current_user["sub"])
    ).first()


def get_db_user(session: Session, current_user) -> User:
    user = find_db_user(session, current_user)

    if not user:
        raise NotFoundError("User not found")

    return user
