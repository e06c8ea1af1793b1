from fastapi import Depends
from marketplace.errors import Forbidden
from marketplace.models.user import User
from marketplace.utils.token import get_current_user


def require_admin(current_user: User = Depends(get_current_user)):
    if not current_user.is_admin:
        raise Forbidden("Admin access required")
    return current_user
