from typing import Optional

from fastapi import APIRouter, Depends, Query

from lbk_points.db.models import User
from lbk_points.logging_config import get_logger
from lbk_points.services import Services
from .deps import get_current_user, get_services
from .schemas import ERROR_RESPONSES, UserOut, UserSearchOut
from .serializers import serialize_public_user, serialize_user

logger = get_logger("api.users")

router = APIRouter(tags=["users"], responses=ERROR_RESPONSES)


@router.get("/me", response_model=UserOut)
async def get_me(user: User = Depends(get_current_user)):
    """
    Profile of the authenticated account.
    """
    return serialize_user(user)


@router.get("/users/search", response_model=UserSearchOut)
async def search_user(
    code: Optional[str] = Query(default=None),
    _caller: User = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    """
    Public lookup of an account by its code.
    """
    logger.info("Searching user code=%s", code)
    user = await services.accounts.search_by_code(code)
    return serialize_public_user(user)
