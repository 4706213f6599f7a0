from typing import Optional
from uuid import UUID

from fastapi import Depends, Header, HTTPException, Request
from sqlalchemy import select

from ..db.deps import get_db
from ..db.models import Account, User, UserToken
from ..logging_config import get_logger
from ..services.security import CallerIdentity, decode_access_token, hash_token
from ..utils import utcnow

logger = get_logger("ledger_bank.api.deps")

TOKEN_COOKIE = "jwt_token"

__all__ = ["TOKEN_COOKIE", "extract_token", "get_current_user", "get_db"]


def extract_token(request: Request, authorization: Optional[str]) -> Optional[str]:
    """
    Bearer header first, then the jwt_token cookie.
    """
    if authorization and authorization.lower().startswith("bearer "):
        token = authorization.split(" ", 1)[1].strip()
        if token:
            return token
    return request.cookies.get(TOKEN_COOKIE) or None


async def get_current_user(
    request: Request,
    authorization: Optional[str] = Header(default=None),
    db=Depends(get_db),
) -> CallerIdentity:
    """
    Resolve the request credential to the caller's identity and account.
    """
    token = extract_token(request, authorization)
    if not token:
        raise HTTPException(status_code=401, detail="Access token required")

    payload = decode_access_token(token)
    if not payload:
        logger.warning("Rejected token: bad signature or expired")
        raise HTTPException(status_code=401, detail="Invalid or expired token")

    try:
        user_id = UUID(str(payload["sub"]))
    except (KeyError, ValueError):
        logger.warning("Rejected token: malformed subject")
        raise HTTPException(status_code=401, detail="Invalid or expired token")

    async with db.begin():
        token_stmt = select(UserToken.id).where(
            UserToken.token_hash == hash_token(token),
            UserToken.user_id == user_id,
            UserToken.is_active.is_(True),
            UserToken.expires_at > utcnow(),
        )
        token_row = (await db.execute(token_stmt)).first()

        user_row = None
        if token_row is not None:
            user_stmt = (
                select(User.user_id, User.username, Account.account_number)
                .join(Account, Account.user_id == User.user_id)
                .where(User.user_id == user_id)
            )
            user_row = (await db.execute(user_stmt)).first()

    if token_row is None:
        logger.warning("Rejected token: revoked or unknown user_id=%s", user_id)
        raise HTTPException(status_code=401, detail="Invalid or expired token")
    if user_row is None:
        logger.warning("Rejected token: user not found user_id=%s", user_id)
        raise HTTPException(status_code=401, detail="User not found")

    return CallerIdentity(
        user_id=user_row.user_id,
        username=user_row.username,
        account_number=user_row.account_number,
    )
