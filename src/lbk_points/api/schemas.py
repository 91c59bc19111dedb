from typing import List, Optional

from pydantic import BaseModel, Field, StrictInt


class RegisterRequest(BaseModel):
    email: str
    password: str
    first_name: str
    last_name: str
    phone_number: Optional[str] = None
    dob: Optional[str] = Field(None, examples=["1990-04-21"])  # YYYY-MM-DD


class LoginRequest(BaseModel):
    email: str
    password: str


class TransferRequest(BaseModel):
    to_code: str = Field(..., examples=["LBK000042"])
    amount: StrictInt = Field(..., examples=[300])
    message: Optional[str] = None


class UserOut(BaseModel):
    id: int
    email: str
    first_name: str
    last_name: str
    phone_number: Optional[str] = None
    dob: Optional[str] = None
    code: str
    point_balance: int
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class LoginResponse(BaseModel):
    token: str
    user: UserOut


class PointBalanceOut(BaseModel):
    code: str
    balance: int
    first_name: str
    last_name: str


class UserSearchOut(BaseModel):
    code: str
    first_name: str
    last_name: str


class TransferOut(BaseModel):
    transfer_id: int
    message: str
    from_user: UserSearchOut
    to_user: UserSearchOut
    amount: int
    status: str
    note: Optional[str] = None
    created_at: Optional[str] = None


class TransferRecordOut(BaseModel):
    id: int
    from_user_id: int
    to_user_id: int
    from_user: Optional[UserSearchOut] = None
    to_user: Optional[UserSearchOut] = None
    amount: int
    message: Optional[str] = None
    status: str
    direction: str
    created_at: Optional[str] = None


class TransferHistoryOut(BaseModel):
    transfers: List[TransferRecordOut]
    count: int


class ErrorOut(BaseModel):
    error: str


# Every failure is rendered as {"error": message} by the handlers in app.py
ERROR_RESPONSES = {
    400: {"model": ErrorOut, "description": "Invalid request"},
    401: {"model": ErrorOut, "description": "Missing or invalid credentials"},
    404: {"model": ErrorOut, "description": "Not found"},
    500: {"model": ErrorOut, "description": "Storage failure"},
}
