from fastapi import Depends, HTTPException, status

from schoolfees.auth.dependencies import get_current_user
from schoolfees.auth.schemas import CurrentUser


def require_roles(*roles: str):
    """
    Dependency factory restricting an endpoint to the given roles.

    Example:
        Depends(require_roles("SCHOOL_ADMIN", "FINANCE"))
    """

    async def _checker(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if current_user.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return current_user

    return _checker
