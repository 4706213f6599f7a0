"""
Funds-transfer ledger.

A transfer debits the caller's account, credits the destination account and
appends one LedgerEntry inside a single DB transaction. Both account rows are
locked (SELECT ... FOR UPDATE) in ascending account-number order before the
balance check runs, so crossing transfers cannot deadlock each other and the
check always sees the latest committed balance.
"""

import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, List, Optional, Tuple

from sqlalchemy import or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..db.models import Account, LedgerEntry, User
from ..logging_config import get_logger
from ..utils import utcnow
from .errors import (
    CallerAccountNotFound,
    DestinationNotFound,
    InsufficientFunds,
    InvalidAmount,
    LedgerError,
    LedgerInternalError,
    SelfTransferRejected,
)
from .security import CallerIdentity

logger = get_logger("ledger_bank.services.ledger")

# plain ASCII digits, optional fraction; no sign, exponent, underscores
AMOUNT_RE = re.compile(r"^[0-9]+(\.[0-9]+)?$")
TWO_PLACES = Decimal("0.01")
# NUMERIC(15, 2)
MAX_AMOUNT = Decimal("10000000000000")
DEFAULT_HISTORY_LIMIT = 50
BALANCE_UNAVAILABLE = "Could not load balance"


@dataclass(frozen=True)
class TransferResult:
    amount: Decimal
    destination_account_id: str
    destination_owner_name: str
    new_balance: Decimal
    entry_id: int


@dataclass(frozen=True)
class LedgerView:
    """
    A ledger entry as seen by one account holder.
    """

    id: int
    from_account: str
    to_account: str
    amount: Decimal
    description: Optional[str]
    transaction_type: str
    direction: str
    created_at: Any


def parse_amount(raw: Any) -> Decimal:
    """
    Parse a transfer amount given as a string or number.

    Raises InvalidAmount unless the value is a finite, positive decimal with
    at most two fractional digits, written with plain ASCII digits.
    """
    if raw is None or isinstance(raw, bool):
        raise InvalidAmount()
    text = str(raw).strip()
    if not AMOUNT_RE.match(text):
        raise InvalidAmount()
    try:
        amount = Decimal(text)
    except (InvalidOperation, ValueError):
        raise InvalidAmount()
    if not amount.is_finite() or amount <= 0 or amount >= MAX_AMOUNT:
        raise InvalidAmount()
    quantized = amount.quantize(TWO_PLACES)
    if quantized != amount:
        raise InvalidAmount("Amount cannot have more than two decimal places")
    return quantized


async def _lock_account(db: AsyncSession, account_number: str) -> Optional[Account]:
    stmt = select(Account).where(Account.account_number == account_number).with_for_update()
    res = await db.execute(stmt)
    return res.scalars().first()


async def _owner_display_name(db: AsyncSession, user_id) -> str:
    res = await db.execute(select(User.full_name, User.username).where(User.user_id == user_id))
    row = res.first()
    if row is None:
        return ""
    return row.full_name or row.username


async def transfer(
    db: AsyncSession,
    caller: CallerIdentity,
    destination_account_id: Optional[str],
    amount: Any,
    memo: Optional[str] = None,
) -> TransferResult:
    """
    Move ``amount`` from the caller's account to ``destination_account_id``.

    Validation order: amount, self-transfer, caller account, destination
    account, funds. Any failure after the transaction has started rolls
    everything back. Not idempotent: a retried call is a second transfer.
    """
    value = parse_amount(amount)
    destination = (destination_account_id or "").strip()
    if destination == caller.account_number:
        logger.warning("Transfer rejected - self transfer account=%s", caller.account_number)
        raise SelfTransferRejected()

    memo = (memo or "").strip() or None
    logger.info(
        "Transfer request from=%s to=%s amount=%s",
        caller.account_number,
        destination,
        value,
    )

    try:
        async with db.begin():
            locked = {}
            for number in sorted({caller.account_number, destination}):
                locked[number] = await _lock_account(db, number)

            sender = locked[caller.account_number]
            if sender is None:
                raise CallerAccountNotFound(
                    f"no account {caller.account_number} for user_id={caller.user_id}"
                )

            recipient = locked[destination]
            if recipient is None:
                logger.warning("Transfer rejected - destination not found to=%s", destination)
                raise DestinationNotFound()

            balance_from = Decimal(sender.balance)
            if balance_from < value:
                logger.warning(
                    "Transfer rejected - insufficient funds from=%s balance=%s amount=%s",
                    caller.account_number,
                    balance_from,
                    value,
                )
                raise InsufficientFunds()

            new_balance_from = (balance_from - value).quantize(TWO_PLACES)
            new_balance_to = (Decimal(recipient.balance) + value).quantize(TWO_PLACES)
            now_ts = utcnow()

            await db.execute(
                update(Account)
                .where(Account.account_id == sender.account_id)
                .values(balance=new_balance_from, updated_at=now_ts)
            )
            await db.execute(
                update(Account)
                .where(Account.account_id == recipient.account_id)
                .values(balance=new_balance_to, updated_at=now_ts)
            )

            entry = LedgerEntry(
                from_account=sender.account_number,
                to_account=recipient.account_number,
                amount=value,
                transaction_type="transfer",
                description=memo,
                created_at=now_ts,
            )
            db.add(entry)
            await db.flush()
            entry_id = entry.id

            owner_name = await _owner_display_name(db, recipient.user_id)

    except LedgerError:
        raise
    except SQLAlchemyError as e:
        logger.exception("Transfer failed (DB error): %s", e)
        raise LedgerInternalError(str(e)) from e
    except Exception as e:
        logger.exception("Transfer failed: %s", e)
        raise LedgerInternalError(str(e)) from e

    logger.info(
        "Transfer success entry_id=%s from=%s to=%s amount=%s",
        entry_id,
        caller.account_number,
        destination,
        value,
    )
    return TransferResult(
        amount=value,
        destination_account_id=destination,
        destination_owner_name=owner_name,
        new_balance=new_balance_from,
        entry_id=entry_id,
    )


async def get_balance(db: AsyncSession, caller: CallerIdentity) -> Tuple[Decimal, str]:
    async with db.begin():
        res = await db.execute(
            select(Account.balance).where(Account.account_number == caller.account_number)
        )
        balance = res.scalar_one_or_none()
    if balance is None:
        raise CallerAccountNotFound(
            f"no account {caller.account_number} for user_id={caller.user_id}",
            message=BALANCE_UNAVAILABLE,
        )
    return Decimal(balance), caller.account_number


async def list_entries(
    db: AsyncSession, caller: CallerIdentity, limit: int = DEFAULT_HISTORY_LIMIT
) -> List[LedgerView]:
    """
    Entries touching the caller's account, newest first, tagged sent/received.
    """
    number = caller.account_number
    stmt = (
        select(LedgerEntry)
        .where(or_(LedgerEntry.from_account == number, LedgerEntry.to_account == number))
        .order_by(LedgerEntry.created_at.desc(), LedgerEntry.id.desc())
        .limit(limit)
    )
    async with db.begin():
        res = await db.execute(stmt)
        entries = res.scalars().all()

    return [
        LedgerView(
            id=e.id,
            from_account=e.from_account,
            to_account=e.to_account,
            amount=Decimal(e.amount),
            description=e.description,
            transaction_type=e.transaction_type,
            direction="sent" if e.from_account == number else "received",
            created_at=e.created_at,
        )
        for e in entries
    ]
