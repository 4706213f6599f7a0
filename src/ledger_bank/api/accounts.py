from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select

from ..db.models import Account, User
from ..logging_config import get_logger
from ..services.security import CallerIdentity
from .deps import get_current_user, get_db
from .schemas import AccountLookupOut

logger = get_logger("ledger_bank.api.accounts")

router = APIRouter(prefix="/accounts", tags=["accounts"])


@router.get("/{account_number}", response_model=AccountLookupOut)
async def lookup_account(
    account_number: str,
    caller: CallerIdentity = Depends(get_current_user),
    db=Depends(get_db),
):
    """
    Resolve an account number to its owner's display name, e.g. to confirm a
    payee before transferring. Balances of other users are never returned.
    """
    acct_num = account_number.strip()
    logger.info("Lookup account_number=%s by user_id=%s", acct_num, caller.user_id)
    async with db.begin():
        stmt = (
            select(Account.account_number, User.full_name, User.username)
            .join(User, User.user_id == Account.user_id)
            .where(Account.account_number == acct_num)
        )
        row = (await db.execute(stmt)).first()
    if row is None:
        logger.warning("Account not found: %s", acct_num)
        raise HTTPException(status_code=404, detail="Account not found")
    return {"account_number": row.account_number, "owner_name": row.full_name or row.username}
