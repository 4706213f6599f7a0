from typing import Optional
from uuid import uuid4

from fastapi import APIRouter, Depends, Header, HTTPException, Request, Response
from sqlalchemy import func, or_, select, update
from sqlalchemy.exc import IntegrityError
from starlette.concurrency import run_in_threadpool

from ..config import get_settings
from ..db.models import Account, User, UserToken
from ..logging_config import get_logger
from ..services.security import (
    CallerIdentity,
    create_access_token,
    hash_password,
    hash_token,
    verify_password,
)
from ..services.validators import validate_login, validate_registration
from ..utils import generate_account_number
from .deps import TOKEN_COOKIE, extract_token, get_current_user, get_db
from .schemas import AuthOut, LoginIn, MessageOut, RegisterIn, UserOut
from .serializers import serialize_user

logger = get_logger("ledger_bank.api.auth")

router = APIRouter(prefix="/auth", tags=["auth"])

ACCOUNT_NUMBER_ATTEMPTS = 5


def _set_token_cookie(response: Response, token: str) -> None:
    settings = get_settings()
    response.set_cookie(
        TOKEN_COOKIE,
        token,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="strict",
        max_age=settings.jwt_expires_minutes * 60,
    )


async def _new_account_number(db) -> str:
    for _ in range(ACCOUNT_NUMBER_ATTEMPTS):
        candidate = generate_account_number()
        res = await db.execute(select(Account.account_id).where(Account.account_number == candidate))
        if res.first() is None:
            return candidate
    raise HTTPException(status_code=500, detail="Could not allocate an account number")


def _issue_token(db, user: User) -> str:
    token, expires_at = create_access_token(user.user_id, user.username)
    db.add(UserToken(user_id=user.user_id, token_hash=hash_token(token), expires_at=expires_at, is_active=True))
    return token


@router.post("/register", response_model=AuthOut, status_code=201)
async def register(payload: RegisterIn, response: Response, db=Depends(get_db)):
    """
    Create a user, their account (with the starting balance) and a session token.
    """
    errors = validate_registration(payload.username, payload.email, payload.password, payload.full_name)
    if errors:
        logger.warning("Registration rejected: %s", errors)
        raise HTTPException(status_code=400, detail=errors[0])

    username = payload.username.strip()
    email = payload.email.strip().lower()
    full_name = payload.full_name.strip()
    logger.info("Registering username=%s", username)

    password_hash = await run_in_threadpool(hash_password, payload.password)
    settings = get_settings()

    try:
        async with db.begin():
            dup_stmt = select(User.user_id).where(
                or_(func.lower(User.username) == username.lower(), User.email == email)
            )
            if (await db.execute(dup_stmt)).first() is not None:
                logger.warning("Username or email already exists username=%s", username)
                raise HTTPException(status_code=409, detail="Username or email already exists")

            user = User(
                user_id=uuid4(),
                username=username,
                email=email,
                password_hash=password_hash,
                full_name=full_name,
            )
            db.add(user)
            # user row must exist before the account FK points at it
            await db.flush()

            account = Account(
                account_id=uuid4(),
                account_number=await _new_account_number(db),
                user_id=user.user_id,
                balance=settings.starting_balance,
            )
            db.add(account)
            token = _issue_token(db, user)
    except IntegrityError:
        # lost a race with a concurrent registration
        logger.warning("Registration conflict on insert username=%s", username)
        raise HTTPException(status_code=409, detail="Username or email already exists")

    logger.info(
        "Registered user_id=%s username=%s account=%s balance=%s",
        user.user_id,
        user.username,
        account.account_number,
        account.balance,
    )
    _set_token_cookie(response, token)
    return {
        "message": "Registration successful",
        "user": serialize_user(user, account),
        "access_token": token,
    }


@router.post("/login", response_model=AuthOut)
async def login(payload: LoginIn, response: Response, db=Depends(get_db)):
    """
    Check credentials, revoke earlier tokens and issue a new one.
    """
    errors = validate_login(payload.username, payload.password)
    if errors:
        raise HTTPException(status_code=400, detail=errors[0])

    ident = payload.username.strip()
    logger.info("Login attempt username=%s", ident)

    async with db.begin():
        stmt = (
            select(User, Account)
            .join(Account, Account.user_id == User.user_id)
            .where(or_(func.lower(User.username) == ident.lower(), User.email == ident.lower()))
        )
        row = (await db.execute(stmt)).first()

    if row is None:
        logger.warning("Login failed - unknown user username=%s", ident)
        raise HTTPException(status_code=401, detail="Invalid credentials")

    user, account = row
    if not await run_in_threadpool(verify_password, payload.password, user.password_hash):
        logger.warning("Login failed - bad password username=%s", ident)
        raise HTTPException(status_code=401, detail="Invalid credentials")

    async with db.begin():
        await db.execute(
            update(UserToken)
            .where(UserToken.user_id == user.user_id, UserToken.is_active.is_(True))
            .values(is_active=False)
        )
        token = _issue_token(db, user)

    logger.info("Login successful user_id=%s username=%s", user.user_id, user.username)
    _set_token_cookie(response, token)
    return {
        "message": "Login successful",
        "user": serialize_user(user, account),
        "access_token": token,
    }


@router.post("/logout", response_model=MessageOut)
async def logout(
    request: Request,
    response: Response,
    authorization: Optional[str] = Header(default=None),
    db=Depends(get_db),
):
    """
    Revoke the presented token (if any) and clear the cookie.
    """
    token = extract_token(request, authorization)
    if token:
        async with db.begin():
            res = await db.execute(
                update(UserToken).where(UserToken.token_hash == hash_token(token)).values(is_active=False)
            )
        logger.info("Logout revoked %s token(s)", res.rowcount)
    response.delete_cookie(TOKEN_COOKIE)
    return {"message": "Logout successful"}


@router.get("/me", response_model=UserOut)
async def me(caller: CallerIdentity = Depends(get_current_user), db=Depends(get_db)):
    async with db.begin():
        stmt = (
            select(User, Account)
            .join(Account, Account.user_id == User.user_id)
            .where(User.user_id == caller.user_id)
        )
        row = (await db.execute(stmt)).first()
    if row is None:
        raise HTTPException(status_code=404, detail="User not found")
    return serialize_user(*row)
