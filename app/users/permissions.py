from fastapi import Depends, HTTPException, status
from loguru import logger
from app.users.auth import get_current_user
from app.users import schemas as user_schemas
from typing import List, Set


def role_required(allowed_roles: List[str]):
    allowed_set: Set[str] = set(r.strip().lower() for r in (allowed_roles or []))

    def wrapper(current_user: user_schemas.UserDisplaySchema = Depends(get_current_user)):
        # Admin bypass
        if current_user.role == "admin":
            return current_user

        if current_user.role not in allowed_set:
            logger.warning(
                f"User {current_user.email} ({current_user.role}) denied; requires {sorted(allowed_set)}"
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions"
            )

        return current_user

    return wrapper


admin_required = role_required(["admin"])
