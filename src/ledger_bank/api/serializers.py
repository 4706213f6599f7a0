from typing import Any, Dict, Optional

from ..db.models import Account, User
from ..services.ledger import LedgerView, TransferResult


def serialize_user(u: User, a: Optional[Account] = None) -> Dict[str, Any]:
    return {
        "user_id": str(u.user_id),
        "username": u.username,
        "email": u.email,
        "full_name": u.full_name,
        "account_number": a.account_number if a is not None else None,
        "balance": float(a.balance) if a is not None and a.balance is not None else None,
        "created_at": u.created_at.isoformat() if getattr(u, "created_at", None) else None,
    }


def serialize_entry(e: LedgerView) -> Dict[str, Any]:
    return {
        "id": e.id,
        "from_account": e.from_account,
        "to_account": e.to_account,
        "amount": float(e.amount),
        "description": e.description,
        "transaction_type": e.transaction_type,
        "direction": e.direction,
        "created_at": e.created_at.isoformat() if e.created_at else None,
    }


def serialize_transfer(r: TransferResult) -> Dict[str, Any]:
    return {
        "message": "Transfer successful",
        "amount": float(r.amount),
        "destination_account_id": r.destination_account_id,
        "destination_owner_name": r.destination_owner_name,
        "new_balance": float(r.new_balance),
    }
