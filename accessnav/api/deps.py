from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from accessnav.core.exceptions import AuthenticationError
from accessnav.core.security import decode_token
from accessnav.db.models import User
from accessnav.db.session import get_db

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)

__all__ = ["get_db", "get_current_user", "oauth2_scheme"]


def get_current_user(
    db: Session = Depends(get_db),
    token: str = Depends(oauth2_scheme),
) -> User:
    """Get the current authenticated user from the bearer token."""
    if not token:
        raise AuthenticationError("Authentication required")

    user_id = decode_token(token)
    if user_id:
        user = db.query(User).filter(User.id == user_id).first()
        if user and user.is_active:
            return user

    raise AuthenticationError("Could not validate credentials", code="INVALID_TOKEN")
