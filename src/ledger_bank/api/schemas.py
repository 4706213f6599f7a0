from typing import Annotated, Any, List, Optional

from pydantic import AliasChoices, BaseModel, BeforeValidator, ConfigDict, Field
from pydantic.alias_generators import to_camel


def _number_to_str(value: Any) -> Any:
    # account numbers and memos sent as JSON numbers are read as text
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


LenientStr = Annotated[Optional[str], BeforeValidator(_number_to_str)]
MAX_MEMO_LENGTH = 255


class CamelModel(BaseModel):
    """
    Wire format is camelCase; Python attributes stay snake_case.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RegisterIn(CamelModel):
    username: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    full_name: Optional[str] = None


class LoginIn(CamelModel):
    # username or email
    username: Optional[str] = None
    password: Optional[str] = None


class UserOut(CamelModel):
    user_id: str
    username: str
    email: str
    full_name: str
    account_number: Optional[str] = None
    balance: Optional[float] = None
    created_at: Optional[str] = None


class AuthOut(CamelModel):
    message: str
    user: UserOut
    access_token: str
    token_type: str = "bearer"


class MessageOut(CamelModel):
    message: str


class TransferIn(CamelModel):
    destination_account_id: LenientStr = Field(
        None,
        validation_alias=AliasChoices("destinationAccountId", "toAccount", "destination_account_id"),
        examples=["ACC000000001"],
    )
    # str or number; parsed by the ledger so bad input maps to InvalidAmount
    amount: Any = Field(None, examples=["100.00"])
    memo: LenientStr = Field(
        None,
        validation_alias=AliasChoices("memo", "description"),
        max_length=MAX_MEMO_LENGTH,
    )


class TransferOut(CamelModel):
    message: str = "Transfer successful"
    amount: float
    destination_account_id: str
    destination_owner_name: str
    new_balance: float


class BalanceOut(CamelModel):
    balance: float
    account_id: str


class LedgerEntryOut(CamelModel):
    id: int
    from_account: str
    to_account: str
    amount: float
    description: Optional[str] = None
    transaction_type: str
    direction: str
    created_at: Optional[str] = None


class LedgerEntriesOut(CamelModel):
    entries: List[LedgerEntryOut]


class AccountLookupOut(CamelModel):
    account_number: str
    owner_name: str


class ErrorOut(BaseModel):
    error: str
    message: str
