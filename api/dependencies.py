"""API Dependencies - hotel staff authentication"""
from typing import Dict, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError

from api.schemas import TokenData
from config.logging import get_logger
from domain.auth import User, UserInDB
from infrastructure.security import decode_access_token, get_password_hash

logger = get_logger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="token")

# Staff accounts per hotel; stands in for the external account service.
# Passwords are hashed lazily on first login.
fake_users_db: Dict[str, dict] = {
    "admin": {
        "user_id": "123e4567-e89b-12d3-a456-426614174000",
        "username": "admin",
        "hotel_id": "hotel-001",
        "full_name": "Front Desk Admin",
        "email": "admin@example.com",
        "password": "admin123",
    },
    "seaside": {
        "user_id": "123e4567-e89b-12d3-a456-426614174001",
        "username": "seaside",
        "hotel_id": "hotel-002",
        "full_name": "Seaside Manager",
        "email": "seaside@example.com",
        "password": "seaside123",
    },
}

_hashed_passwords: Dict[str, str] = {}


def get_user(db: Dict[str, dict], username: str) -> Optional[UserInDB]:
    account = db.get(username)
    if account is None:
        return None
    if username not in _hashed_passwords:
        _hashed_passwords[username] = get_password_hash(account["password"])
    fields = {k: v for k, v in account.items() if k != "password"}
    return UserInDB(**fields, hashed_password=_hashed_passwords[username])


async def get_current_user(token: str = Depends(oauth2_scheme)) -> UserInDB:
    """Resolve the bearer token to a staff user of the hotel it was issued for"""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = decode_access_token(token)
    except JWTError:
        raise credentials_exception

    token_data = TokenData(username=payload.get("sub"), hotel_id=payload.get("hotel_id"))
    if token_data.username is None:
        raise credentials_exception

    user = get_user(fake_users_db, token_data.username)
    if user is None:
        raise credentials_exception
    if user.hotel_id != token_data.hotel_id:
        logger.warning("Token hotel does not match user", hotel_id=token_data.hotel_id, username=user.username)
        raise credentials_exception
    return user


async def get_current_active_user(current_user: User = Depends(get_current_user)) -> User:
    if current_user.disabled:
        raise HTTPException(status_code=400, detail="Inactive user")
    return current_user
