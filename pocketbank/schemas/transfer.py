"""
Pydantic schemas for transfers.

Request bodies deliberately keep amount and source loose: the
transfer service owns validation so the same rules and messages
apply whether it is called over HTTP or directly.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from pocketbank.models.enums import DestinationType, TransferSource


# --- Request Schemas ---

class TransferRequest(BaseModel):
    """Send money to another user."""
    to_user_id: int
    amount: Decimal
    source: str = "wallet"
    note: str | None = Field(default=None, max_length=255)
    idempotency_key: str | None = Field(default=None, max_length=100)


class SelfTransferRequest(BaseModel):
    """Move money between two of the caller's own accounts."""
    from_account_id: int
    to_account_id: int
    amount: Decimal
    note: str | None = Field(default=None, max_length=255)
    idempotency_key: str | None = Field(default=None, max_length=100)


# --- Result Schemas ---

class PartyInfo(BaseModel):
    user_id: int
    name: str
    email: str


class BalanceSnapshot(BaseModel):
    wallet_balance: Decimal
    account_balance: Decimal


class UpdatedBalances(BaseModel):
    sender: BalanceSnapshot
    recipient: BalanceSnapshot


class DestinationDetails(BaseModel):
    type: DestinationType
    account_id: int | None = None
    bank_name: str | None = None


class TransferResult(BaseModel):
    """
    Everything a caller learns about a completed transfer.

    This is the only outcome channel of execute_transfer.
    """
    transfer_id: int
    transfer_reference: str
    amount: Decimal
    source: TransferSource
    source_account_id: int | None = None
    note: str = ""
    is_self_transfer: bool = False
    destination_type: DestinationType
    destination_details: DestinationDetails
    transfer_date: datetime
    sender: PartyInfo
    recipient: PartyInfo
    updated_balances: UpdatedBalances


class TransferHistoryItem(BaseModel):
    transfer_id: int
    transfer_reference: str
    from_user_id: int
    to_user_id: int
    amount: Decimal
    note: str | None
    transfer_date: datetime
    sender_name: str
    recipient_name: str
    direction: str  # "sent" or "received"


class Pagination(BaseModel):
    total: int
    limit: int
    offset: int
    has_more: bool


class TransferHistoryPage(BaseModel):
    transfers: list[TransferHistoryItem]
    pagination: Pagination


class FoundUser(BaseModel):
    user_id: int
    full_name: str | None
    username: str | None
    email: str
    name: str


class FindUserResponse(BaseModel):
    found: bool
    user: FoundUser | None = None
