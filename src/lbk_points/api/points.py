from fastapi import APIRouter, Depends

from lbk_points.db.models import User
from lbk_points.logging_config import get_logger
from lbk_points.services import Services
from .deps import get_current_user, get_services
from .schemas import ERROR_RESPONSES, PointBalanceOut, TransferHistoryOut, TransferOut, TransferRequest
from .serializers import serialize_balance, serialize_transfer, serialize_transfer_result

logger = get_logger("api.points")

router = APIRouter(prefix="/points", tags=["points"], responses=ERROR_RESPONSES)


@router.get("/balance", response_model=PointBalanceOut)
async def get_balance(user: User = Depends(get_current_user)):
    logger.info("Balance lookup user_id=%s", user.id)
    return serialize_balance(user)


@router.post("/transfer", response_model=TransferOut)
async def transfer_points(
    payload: TransferRequest,
    user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    """
    Move points from the authenticated account to the account with to_code.
    The sender always comes from the token, never from the body.
    """
    result = await services.transfers.transfer(
        source_account_id=user.id,
        destination_code=payload.to_code,
        amount=payload.amount,
        message=payload.message,
    )
    return serialize_transfer_result(result)


@router.get("/history", response_model=TransferHistoryOut)
async def get_history(
    user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    """
    Up to 50 most recent transfers sent or received, newest first.
    """
    transfers = await services.history.list_transfers(user.id)
    items = [serialize_transfer(t, user.id) for t in transfers]
    return {"transfers": items, "count": len(items)}
