"""
Typed failures raised by the ledger service.

Each error carries the public code sent to clients, a user-facing message
and the HTTP status the API layer maps it to.
"""

from typing import Optional


class LedgerError(Exception):
    code = "Internal"
    status_code = 500
    default_message = "Transfer failed"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"error": self.code, "message": self.message}


class InvalidAmount(LedgerError):
    code = "InvalidAmount"
    status_code = 400
    default_message = "Invalid transfer amount"


class SelfTransferRejected(LedgerError):
    code = "SelfTransferRejected"
    status_code = 400
    default_message = "Cannot transfer to your own account"


class DestinationNotFound(LedgerError):
    code = "DestinationNotFound"
    status_code = 404
    default_message = "Recipient account not found"


class InsufficientFunds(LedgerError):
    code = "InsufficientFunds"
    status_code = 400
    default_message = "Insufficient balance"


class LedgerInternalError(LedgerError):
    """
    Storage failure, lock timeout or anything unexpected. Safe to retry.
    The message is always generic; read paths pass their own.
    """

    def __init__(self, detail: Optional[str] = None, message: Optional[str] = None):
        # the detail goes to the server log, never to the client
        self.detail = detail
        super().__init__(message)


class CallerAccountNotFound(LedgerInternalError):
    """
    The authenticated caller has no account row. Reported to clients as Internal.
    """


class MalformedTransferRequest(LedgerError):
    """
    The transfer body could not be read at all (wrong JSON types, memo too long).
    """

    code = "InvalidRequest"
    status_code = 400
    default_message = "Malformed transfer request"
