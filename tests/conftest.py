import os
import tempfile

# must be set before ledger_bank.config caches its settings
_TMP = tempfile.mkdtemp(prefix="ledger_bank_tests_")
os.environ.setdefault("LOG_DIR", os.path.join(_TMP, "logs"))
os.environ.setdefault("DATABASE_URL", f"sqlite+aiosqlite:///{os.path.join(_TMP, 'unused.db')}")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("JWT_SECRET", "test-secret")

from decimal import Decimal
from uuid import uuid4

import httpx
import pytest
from sqlalchemy import func, select

from ledger_bank.app import app
from ledger_bank.db.deps import get_db
from ledger_bank.db.models import Account, LedgerEntry, User
from ledger_bank.db.session import build_engine, build_sessionmaker, init_models
from ledger_bank.services.security import CallerIdentity


@pytest.fixture
async def engine(tmp_path):
    eng = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'ledger.db'}")
    await init_models(eng)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(engine):
    return build_sessionmaker(engine)


@pytest.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def make_account(session_factory):
    """
    Insert a user + account directly and return the caller identity.
    """

    async def _make(username: str, balance, full_name: str = None) -> CallerIdentity:
        user_id = uuid4()
        number = f"ACC{username.upper()}"
        async with session_factory() as db:
            async with db.begin():
                db.add(
                    User(
                        user_id=user_id,
                        username=username,
                        email=f"{username}@example.com",
                        password_hash="not-a-real-hash",
                        full_name=full_name if full_name is not None else username.title(),
                    )
                )
                await db.flush()
                db.add(
                    Account(
                        account_id=uuid4(),
                        account_number=number,
                        user_id=user_id,
                        balance=Decimal(str(balance)),
                    )
                )
        return CallerIdentity(user_id=user_id, username=username, account_number=number)

    return _make


@pytest.fixture
def balance_of(session_factory):
    async def _balance(account_number: str) -> Decimal:
        async with session_factory() as db:
            res = await db.execute(select(Account.balance).where(Account.account_number == account_number))
            return Decimal(res.scalar_one())

    return _balance


@pytest.fixture
def entry_count(session_factory):
    async def _count() -> int:
        async with session_factory() as db:
            res = await db.execute(select(func.count()).select_from(LedgerEntry))
            return res.scalar_one()

    return _count
