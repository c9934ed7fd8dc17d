from datetime import datetime, timedelta, timezone
from typing import Optional
from fastapi import HTTPException, Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
import logging
import uuid

from jose import jwt, JWTError

from fazztrack.config import get_settings
from fazztrack.models.user import User, get_db

logger = logging.getLogger(__name__)

settings = get_settings()
SECRET_KEY = settings.SECRET_KEY
ALGORITHM = settings.ALGORITHM
ACCESS_TOKEN_EXPIRE_MINUTES = settings.ACCESS_TOKEN_EXPIRE_MINUTES

http_bearer = HTTPBearer(auto_error=False)


# ===== JWT helpers =====
def create_access_token(subject: str, expires_delta: Optional[timedelta] = None) -> str:
    jti = uuid.uuid4().hex
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    payload = {"sub": subject, "exp": expire, "iat": now, "nbf": now, "jti": jti}
    return jwt.encode(payload, SECRET_KEY, algorithm=ALGORITHM)


def get_current_user_email(token: HTTPAuthorizationCredentials = Depends(http_bearer)) -> str:
    if not token or not token.credentials:
        raise HTTPException(status_code=401, detail="Not authenticated")
    try:
        payload = jwt.decode(token.credentials, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid or expired token")
    email = payload.get("sub")
    if not email:
        raise HTTPException(status_code=401, detail="Invalid token payload")
    return email


def get_current_user(
    email: str = Depends(get_current_user_email),
    db: Session = Depends(get_db),
) -> User:
    user = db.query(User).filter(User.email == email).first()
    if not user:
        logger.warning("Token presented for unknown user %s", email)
        raise HTTPException(status_code=401, detail="Invalid user")
    return user
