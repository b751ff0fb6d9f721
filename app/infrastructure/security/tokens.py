import logging
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
import jwt

from ...application.ports.security import TokenIssuer
from ...core.config import settings

logger = logging.getLogger(__name__)

def create_jwt_token(data: Dict[str, Any], expires_minutes: Optional[int] = None) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + timedelta(minutes=expires_minutes or settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": expire, "type": "access"})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

def decode_jwt_token(token: str) -> Optional[Dict[str, Any]]:
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except jwt.ExpiredSignatureError:
        logger.warning("Token has expired")
        return None
    except jwt.InvalidTokenError as e:
        logger.warning(f"JWT error: {e}")
        return None


class JwtTokenIssuer(TokenIssuer):
    def issue(self, claims: Dict[str, Any]) -> str:
        return create_jwt_token(claims)
