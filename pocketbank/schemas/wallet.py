"""
Pydantic schemas for wallet <-> account moves.
"""

from decimal import Decimal

from pydantic import BaseModel


class WalletMoveRequest(BaseModel):
    account_id: int
    amount: Decimal


class BalancesResponse(BaseModel):
    wallet_balance: Decimal
    account_balance: Decimal
    total_accounts: int


class WalletMoveResult(BaseModel):
    account_id: int
    amount: Decimal
    wallet_balance: Decimal
    account_balance: Decimal
    message: str
