from typing import Any, Dict, Optional

from lbk_points.db.models import Transfer, User
from lbk_points.services.transfers import AccountSnapshot, TransferResult


def serialize_user(u: User) -> Dict[str, Any]:
    # password_hash never leaves the service
    return {
        "id": u.id,
        "email": u.email,
        "first_name": u.first_name,
        "last_name": u.last_name,
        "phone_number": u.phone_number,
        "dob": u.dob.isoformat() if u.dob else None,
        "code": u.code,
        "point_balance": u.point_balance,
        "created_at": u.created_at.isoformat() if u.created_at else None,
        "updated_at": u.updated_at.isoformat() if u.updated_at else None,
    }


def serialize_public_user(u: Optional[User]) -> Optional[Dict[str, Any]]:
    if u is None:
        return None
    return {"code": u.code, "first_name": u.first_name, "last_name": u.last_name}


def serialize_balance(u: User) -> Dict[str, Any]:
    return {
        "code": u.code,
        "balance": u.point_balance,
        "first_name": u.first_name,
        "last_name": u.last_name,
    }


def _serialize_snapshot(s: AccountSnapshot) -> Dict[str, Any]:
    return {"code": s.code, "first_name": s.first_name, "last_name": s.last_name}


def serialize_transfer_result(r: TransferResult) -> Dict[str, Any]:
    return {
        "transfer_id": r.transfer_id,
        "message": "Transfer completed successfully",
        "from_user": _serialize_snapshot(r.from_user),
        "to_user": _serialize_snapshot(r.to_user),
        "amount": r.amount,
        "status": r.status,
        "note": r.message,
        "created_at": r.created_at.isoformat() if r.created_at else None,
    }


def serialize_transfer(t: Transfer, viewer_id: int) -> Dict[str, Any]:
    return {
        "id": t.id,
        "from_user_id": t.from_user_id,
        "to_user_id": t.to_user_id,
        "from_user": serialize_public_user(t.from_user),
        "to_user": serialize_public_user(t.to_user),
        "amount": t.amount,
        "message": t.message,
        "status": t.status,
        "direction": "sent" if t.from_user_id == viewer_id else "received",
        "created_at": t.created_at.isoformat() if t.created_at else None,
    }
