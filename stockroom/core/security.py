from datetime import datetime, timedelta
from typing import Optional
from jose import JWTError, jwt
from stockroom.core.config import settings

# Tokens are issued by the login service; this module only signs and verifies.

def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Generate a signed access token"""
    to_encode = data.copy()
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire, "type": "access"})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

def verify_token(token: str) -> Optional[dict]:
    """Return the token payload, or None when the signature is invalid"""
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        return None
