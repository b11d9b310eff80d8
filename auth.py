import hashlib
from datetime import datetime, timedelta, timezone

import jwt
from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pymongo.database import Database

from config import Settings, get_settings
from database import find_by_id, get_db, serialize_doc
from errors import Forbidden

security = HTTPBearer()


def hash_password(password: str, salt: str) -> str:
    return hashlib.sha256((password + salt).encode()).hexdigest()


def create_token(payload: dict, settings: Settings) -> str:
    exp = datetime.now(timezone.utc) + timedelta(days=settings.jwt_expires_days)
    to_encode = {**payload, "exp": exp}
    return jwt.encode(to_encode, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_token(token: str, settings: Settings) -> dict:
    try:
        return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token expired")
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail="Invalid token")


def public_user(user: dict) -> dict:
    return {"id": user["id"], "name": user["name"], "email": user["email"], "role": user.get("role", "user")}


def issue_token(user: dict, settings: Settings) -> dict:
    token = create_token({"id": user["id"], "email": user["email"], "role": user.get("role", "user")}, settings)
    return {"token": token, "user": public_user(user)}


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Database = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    payload = decode_token(credentials.credentials, settings)
    user_id = payload.get("id")
    if not user_id:
        raise HTTPException(status_code=401, detail="Invalid token payload")
    user = find_by_id(db, "user", user_id)
    if not user:
        raise HTTPException(status_code=401, detail="User not found")
    return serialize_doc(user)


def is_admin(user: dict) -> bool:
    return user.get("role") == "admin"


async def require_admin(user=Depends(get_current_user)):
    if not is_admin(user):
        raise Forbidden("Admin only")
    return user
