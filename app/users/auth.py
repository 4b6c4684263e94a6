from datetime import datetime, timedelta
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from loguru import logger
from sqlalchemy.orm import Session

from app.config import settings
from app.database import get_db
from app.security.passwords import verify_password
from app.users import crud as user_crud
from app.users import schemas as user_schemas
from app.users.models import User

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/token")


def authenticate_user(db: Session, email: str, password: str) -> Optional[User]:
    user = user_crud.get_user_by_email(db, email)
    if not user:
        return None
    if not verify_password(password, user.hashed_password):
        return None
    return user


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    expire = datetime.utcnow() + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def token_for_user(user: User) -> str:
    role = getattr(user.role, "value", user.role)
    return create_access_token(data={"sub": str(user.id), "role": role})


def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> user_schemas.UserDisplaySchema:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        user_id = payload.get("sub")
        if user_id is None:
            raise credentials_exception
        user_id = int(user_id)
    except (JWTError, ValueError):
        logger.warning("Rejected bearer token")
        raise credentials_exception

    # Role comes from the database so demotions apply to live tokens
    user = user_crud.get_user(db, user_id)
    if user is None:
        raise credentials_exception

    return user_schemas.UserDisplaySchema.model_validate(user)
