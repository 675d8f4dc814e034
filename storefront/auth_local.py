from datetime import datetime, timedelta, timezone
import jwt
from typing import Optional
from .core_settings import get_settings

def create_access_token(subject: str, role: str = "CUSTOMER", expires_minutes: Optional[int] = None) -> str:
    settings = get_settings()
    minutes = settings.ACCESS_TOKEN_MINUTES if expires_minutes is None else expires_minutes
    now = datetime.now(timezone.utc)
    payload = {"sub": str(subject), "role": role, "iat": now, "exp": now + timedelta(minutes=minutes)}
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALG)

def decode_access_token(token: str) -> Optional[dict]:
    settings = get_settings()
    try:
        return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALG])
    except jwt.PyJWTError:
        return None
