from fastapi import APIRouter, Depends

from lbk_points.security import create_token
from lbk_points.services import Services
from .deps import get_services
from .schemas import ERROR_RESPONSES, LoginRequest, LoginResponse, RegisterRequest
from .serializers import serialize_user

router = APIRouter(tags=["authentication"], responses=ERROR_RESPONSES)


def _issue_token(services: Services, user) -> str:
    settings = services.settings
    return create_token(user.id, user.email, settings.jwt_secret, settings.jwt_ttl_hours)


@router.post("/register", response_model=LoginResponse)
async def register(payload: RegisterRequest, services: Services = Depends(get_services)):
    """
    Create an account with the starting point balance and log it in.
    """
    user = await services.accounts.register(
        email=payload.email,
        password=payload.password,
        first_name=payload.first_name,
        last_name=payload.last_name,
        phone_number=payload.phone_number,
        dob=payload.dob,
    )
    return {"token": _issue_token(services, user), "user": serialize_user(user)}


@router.post("/login", response_model=LoginResponse)
async def login(payload: LoginRequest, services: Services = Depends(get_services)):
    """
    Validate email + password and return a bearer token.
    """
    user = await services.accounts.authenticate(payload.email, payload.password)
    return {"token": _issue_token(services, user), "user": serialize_user(user)}
