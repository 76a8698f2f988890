"""Business logic services."""

from pocketbank.services.account_locator import AccountLocator
from pocketbank.services.balance_service import BalanceService
from pocketbank.services.audit_service import AuditLogger
from pocketbank.services.transfer_service import TransferService
from pocketbank.services.bill_service import BillService
from pocketbank.services.wallet_service import WalletService
from pocketbank.services.account_service import AccountService
from pocketbank.services.history_service import HistoryService

__all__ = [
    "AccountLocator",
    "BalanceService",
    "AuditLogger",
    "TransferService",
    "BillService",
    "WalletService",
    "AccountService",
    "HistoryService",
]
