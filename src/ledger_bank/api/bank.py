from fastapi import APIRouter, Depends, Query

from ..logging_config import get_logger
from ..services import ledger
from ..services.security import CallerIdentity
from .deps import get_current_user, get_db
from .schemas import BalanceOut, ErrorOut, LedgerEntriesOut, TransferIn, TransferOut
from .serializers import serialize_entry, serialize_transfer

logger = get_logger("ledger_bank.api.bank")

router = APIRouter(prefix="/bank", tags=["bank"])


@router.get("/balance", response_model=BalanceOut)
async def get_balance(caller: CallerIdentity = Depends(get_current_user), db=Depends(get_db)):
    balance, account_number = await ledger.get_balance(db, caller)
    return {"balance": float(balance), "account_id": account_number}


@router.post(
    "/transfer",
    response_model=TransferOut,
    responses={400: {"model": ErrorOut}, 404: {"model": ErrorOut}, 500: {"model": ErrorOut}},
)
async def transfer_funds(
    payload: TransferIn,
    caller: CallerIdentity = Depends(get_current_user),
    db=Depends(get_db),
):
    """
    Move funds from the caller's account to another account in one DB transaction.
    Ledger errors are turned into JSON by the app-level exception handler.
    """
    result = await ledger.transfer(
        db,
        caller,
        payload.destination_account_id,
        payload.amount,
        memo=payload.memo,
    )
    return serialize_transfer(result)


@router.get("/transactions", response_model=LedgerEntriesOut)
async def get_transactions(
    limit: int = Query(ledger.DEFAULT_HISTORY_LIMIT, ge=1, le=200),
    caller: CallerIdentity = Depends(get_current_user),
    db=Depends(get_db),
):
    """
    Ledger entries touching the caller's account, newest first.
    """
    logger.info("Fetching transactions account=%s limit=%s", caller.account_number, limit)
    entries = await ledger.list_entries(db, caller, limit=limit)
    return {"entries": [serialize_entry(e) for e in entries]}
