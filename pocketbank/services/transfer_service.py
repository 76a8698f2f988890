"""
Transfer service: moves money between users, or between two
balances of the same user.

execute_transfer():
1. Validates the request before touching the database
2. Locks sender and recipient rows (lowest user id first)
3. Debits the funding leg (wallet or bank account), guarded
4. Credits the receiving leg (recipient's primary account if
   they have one, else their wallet; the chosen account for a
   self transfer)
5. Records the Transfer row and the per-user ledger rows
6. Writes one audit record per leg, with the balances seen at
   the moment of each mutation
7. Commits, or rolls the whole thing back on any failure

The result object is the only way a caller learns the outcome.
"""

from decimal import Decimal

from sqlalchemy import select, or_
from sqlalchemy.orm import Session

from pocketbank.errors import InvalidRequest, NotFound, InsufficientFunds
from pocketbank.logging_config import get_logger
from pocketbank.models.account import Account
from pocketbank.models.enums import (
    DestinationType,
    EndpointType,
    LedgerStatus,
    LedgerTransactionType,
    PaymentMethod,
    TransferSource,
)
from pocketbank.models.transaction import Transaction, WALLET_LABEL
from pocketbank.models.transfer import Transfer
from pocketbank.models.user import User
from pocketbank.money import format_amount, parse_amount
from pocketbank.schemas.history import Endpoint
from pocketbank.schemas.transfer import (
    DestinationDetails,
    FindUserResponse,
    FoundUser,
    PartyInfo,
    TransferResult,
    UpdatedBalances,
)
from pocketbank.services.account_locator import AccountLocator
from pocketbank.services.audit_service import AuditLogger, MY_WALLET
from pocketbank.services.balance_service import BalanceService
from pocketbank.services.references import transfer_reference
from pocketbank.services.unit_of_work import atomic

logger = get_logger("pocketbank.transfers")


def _with_note(text: str, note: str | None) -> str:
    return f"{text}: {note}" if note else text


class TransferService:

    def __init__(
        self,
        db: Session,
        balances: BalanceService | None = None,
        audit: AuditLogger | None = None,
    ):
        self.db = db
        self.locator = AccountLocator(db)
        self.balances = balances or BalanceService(db)
        self.audit = audit or AuditLogger(db)

    # --- Validation ---

    def _validate(
        self, from_user_id, to_user_id, amount, source,
        is_self_transfer, from_account_id, to_account_id,
    ) -> tuple[Decimal, TransferSource]:
        """Checks that need no database access, in a fixed order."""
        if not from_user_id or not to_user_id:
            raise InvalidRequest("Sender and recipient are required")

        if from_user_id == to_user_id and not is_self_transfer:
            raise InvalidRequest(
                "Cannot transfer money to yourself. "
                "Use self transfer for moving money between your accounts."
            )
        if is_self_transfer and from_user_id != to_user_id:
            raise InvalidRequest("Self transfers must stay within one user")

        value = source.value if isinstance(source, TransferSource) else source
        try:
            source = TransferSource(value)
        except ValueError:
            raise InvalidRequest('Source must be either "wallet" or "account"')

        if is_self_transfer:
            if not from_account_id or not to_account_id:
                raise InvalidRequest(
                    "Source and destination account IDs are required "
                    "for self transfers"
                )
            if from_account_id == to_account_id:
                raise InvalidRequest("Cannot transfer money to the same account")

        return parse_amount(amount), source

    # --- Main operation ---

    def execute_transfer(
        self,
        from_user_id: int,
        to_user_id: int,
        amount,
        source: TransferSource | str = TransferSource.WALLET,
        note: str | None = None,
        is_self_transfer: bool = False,
        from_account_id: int | None = None,
        to_account_id: int | None = None,
        idempotency_key: str | None = None,
    ) -> TransferResult:
        """
        Move `amount` from the sender's chosen balance to the recipient.

        Raises InvalidRequest, NotFound, InsufficientFunds or
        Internal. On any of them nothing has changed.

        With an idempotency_key, a repeat of an already committed
        transfer from the same sender returns that transfer and moves
        no money. Its updated_balances are the balances as they stand
        now. Reusing a key for a different recipient, amount, source
        or account pair raises InvalidRequest.
        """
        amount, source = self._validate(
            from_user_id, to_user_id, amount, source,
            is_self_transfer, from_account_id, to_account_id,
        )
        note = note.strip() if note and note.strip() else None

        with atomic(self.db, "Transfer"):
            if idempotency_key:
                existing = self._find_by_idempotency_key(
                    from_user_id, idempotency_key
                )
                if existing:
                    if not self._same_request(
                        existing, to_user_id, amount, source,
                        is_self_transfer, from_account_id, to_account_id,
                    ):
                        logger.warning(
                            "Idempotency key %s reused by user %s for a different transfer",
                            idempotency_key, from_user_id,
                        )
                        raise InvalidRequest(
                            "Idempotency key was already used for a different transfer"
                        )
                    logger.info(
                        "Replaying transfer %s for idempotency key %s",
                        existing.reference, idempotency_key,
                    )
                    return self._build_result(existing)

            transfer = self._execute(
                from_user_id, to_user_id, amount, source, note,
                is_self_transfer, from_account_id, to_account_id,
                idempotency_key,
            )
            result = self._build_result(transfer)

        logger.info(
            "Transfer %s completed: %s from user %s (%s) to user %s (%s)",
            result.transfer_reference,
            amount,
            from_user_id,
            source.value,
            to_user_id,
            result.destination_type.value,
        )
        return result

    def _execute(
        self, from_user_id, to_user_id, amount, source, note,
        is_self_transfer, from_account_id, to_account_id, idempotency_key,
    ) -> Transfer:
        users = self.locator.lock_users(from_user_id, to_user_id)
        sender = users.get(from_user_id)
        if sender is None:
            raise NotFound("Sender not found")
        recipient = users.get(to_user_id)
        if recipient is None:
            raise NotFound("Recipient not found")

        own_accounts = {}
        if is_self_transfer:
            own_accounts = self.locator.lock_accounts(
                from_user_id, from_account_id, to_account_id
            )

        # --- Funding leg ---
        sender_account = None
        if source == TransferSource.WALLET:
            sender_before = sender.wallet_balance
            if sender_before < amount:
                raise InsufficientFunds(
                    f"Insufficient wallet balance. "
                    f"Available: {format_amount(sender_before)}",
                    sender_before,
                )
            self.balances.apply_wallet_delta(sender.id, -amount)
        else:
            if is_self_transfer:
                sender_account = own_accounts.get(from_account_id)
                if sender_account is None:
                    raise NotFound(
                        "Source account not found or does not belong to you"
                    )
            else:
                sender_account = self.locator.lock_primary_account(sender.id)
                if sender_account is None:
                    raise NotFound("Sender does not have a linked bank account")

            sender_before = sender_account.balance
            if sender_before < amount:
                raise InsufficientFunds(
                    f"Insufficient account balance. "
                    f"Available: {format_amount(sender_before)}",
                    sender_before,
                )
            self.balances.apply_account_delta(
                sender.id, sender_account.id, -amount
            )
        sender_after = sender_before - amount

        # --- Receiving leg ---
        if is_self_transfer:
            recipient_account = own_accounts.get(to_account_id)
            if recipient_account is None:
                raise NotFound(
                    "Destination account not found or does not belong to you"
                )
        else:
            # Peer transfers land in the recipient's bank account when they have one
            recipient_account = self.locator.lock_primary_account(recipient.id)

        if recipient_account is not None:
            destination_type = DestinationType.ACCOUNT
            recipient_before = recipient_account.balance
            self.balances.apply_account_delta(
                recipient.id, recipient_account.id, amount
            )
        else:
            destination_type = DestinationType.WALLET
            recipient_before = recipient.wallet_balance
            self.balances.apply_wallet_delta(recipient.id, amount)
        recipient_after = recipient_before + amount

        # --- Records ---
        transfer = Transfer(
            reference=transfer_reference(),
            from_user_id=sender.id,
            to_user_id=recipient.id,
            amount=amount,
            note=note,
            source=source,
            source_account_id=sender_account.id if sender_account else None,
            destination_type=destination_type,
            destination_account_id=(
                recipient_account.id if recipient_account else None
            ),
            is_self_transfer=is_self_transfer,
            idempotency_key=idempotency_key,
        )
        self.db.add(transfer)
        self.db.flush()

        self._write_ledger_rows(
            transfer, sender, recipient, sender_account, recipient_account
        )
        self._write_audit(
            transfer, sender, recipient, sender_account, recipient_account,
            sender_before, sender_after, recipient_before, recipient_after,
        )
        return transfer

    # --- Ledger rows ---

    def _write_ledger_rows(
        self, transfer, sender, recipient, sender_account, recipient_account
    ) -> None:
        """One row for the sender, plus one for the recipient unless self."""
        amount = transfer.amount
        note = transfer.note
        if transfer.source == TransferSource.WALLET:
            payment_method = PaymentMethod.WALLET
            funded_from = from_label = WALLET_LABEL
        else:
            payment_method = PaymentMethod.BANK_TRANSFER
            funded_from = sender_account.bank_name
            from_label = sender_account.ledger_label
        if recipient_account is not None:
            landed_in = recipient_account.bank_name
            to_label = recipient_account.ledger_label
        else:
            landed_in = to_label = WALLET_LABEL

        if transfer.is_self_transfer:
            self.db.add(Transaction(
                user_id=sender.id,
                transaction_type=LedgerTransactionType.SELF_TRANSFER,
                amount=amount,
                payment_method=payment_method,
                status=LedgerStatus.SUCCESS,
                description=_with_note(
                    f"Self Transfer: {format_amount(amount)} "
                    f"from {funded_from} to {landed_in}",
                    note,
                ),
                reference_number=transfer.reference,
                from_account=from_label,
                to_account=to_label,
            ))
        else:
            self.db.add_all([
                Transaction(
                    user_id=sender.id,
                    transaction_type=LedgerTransactionType.TRANSFER,
                    amount=amount,
                    payment_method=payment_method,
                    status=LedgerStatus.SUCCESS,
                    description=_with_note(
                        f"Sent {format_amount(amount)} to {recipient.display_name}",
                        note,
                    ),
                    reference_number=transfer.reference,
                    from_account=from_label,
                    to_account=to_label,
                ),
                Transaction(
                    user_id=recipient.id,
                    transaction_type=LedgerTransactionType.TRANSFER,
                    amount=amount,
                    payment_method=payment_method,
                    status=LedgerStatus.SUCCESS,
                    description=_with_note(
                        f"Received {format_amount(amount)} from {sender.display_name}",
                        note,
                    ),
                    reference_number=transfer.reference,
                    from_account=from_label,
                    to_account=to_label,
                ),
            ])
        self.db.flush()

    # --- Audit ---

    def _write_audit(
        self, transfer, sender, recipient, sender_account, recipient_account,
        sender_before, sender_after, recipient_before, recipient_after,
    ) -> None:
        amount = transfer.amount
        note = transfer.note

        if sender_account is not None:
            source = Endpoint(
                type=EndpointType.BANK_ACCOUNT,
                id=sender_account.id,
                name=sender_account.bank_name,
            )
        else:
            source = Endpoint(type=EndpointType.WALLET, name=MY_WALLET)

        if recipient_account is not None:
            destination = Endpoint(
                type=EndpointType.BANK_ACCOUNT,
                id=recipient_account.id,
                name=recipient_account.bank_name,
            )
        else:
            destination = Endpoint(type=EndpointType.WALLET, name=MY_WALLET)

        if transfer.is_self_transfer:
            for before, after in (
                (sender_before, sender_after),
                (recipient_before, recipient_after),
            ):
                self.audit.log_self_transfer(
                    sender.id, amount, source, destination, transfer.id,
                    before, after, note,
                )
            return

        # Sender leg
        if sender_account is None:
            self.audit.log_wallet_transfer_sent(
                sender.id, amount, recipient.display_name, recipient.id,
                transfer.id, sender_before, sender_after, note,
            )
        else:
            if recipient_account is not None:
                sent_to = destination
            else:
                sent_to = Endpoint(
                    type=EndpointType.USER,
                    id=recipient.id,
                    name=recipient.display_name,
                )
            self.audit.log_account_transfer_sent(
                sender.id, amount, source, sent_to, recipient.display_name,
                transfer.id, sender_before, sender_after, note,
            )

        # Recipient leg
        if recipient_account is None:
            self.audit.log_wallet_transfer_received(
                recipient.id, amount, sender.display_name, sender.id,
                transfer.id, recipient_before, recipient_after, note,
            )
        else:
            if sender_account is not None:
                received_from = source
            else:
                received_from = Endpoint(
                    type=EndpointType.WALLET,
                    id=sender.id,
                    name=sender.display_name,
                )
            self.audit.log_account_transfer_received(
                recipient.id, amount, received_from, destination,
                sender.display_name, transfer.id,
                recipient_before, recipient_after, note,
            )

    # --- Results ---

    def _find_by_idempotency_key(
        self, from_user_id: int, idempotency_key: str
    ) -> Transfer | None:
        return self.db.execute(
            select(Transfer).where(
                Transfer.from_user_id == from_user_id,
                Transfer.idempotency_key == idempotency_key,
            )
        ).scalar_one_or_none()

    @staticmethod
    def _same_request(
        existing: Transfer, to_user_id, amount, source,
        is_self_transfer, from_account_id, to_account_id,
    ) -> bool:
        if (
            existing.to_user_id != to_user_id
            or existing.amount != amount
            or existing.source != source
            or existing.is_self_transfer != is_self_transfer
        ):
            return False
        if from_account_id and existing.source_account_id != from_account_id:
            return False
        if is_self_transfer and existing.destination_account_id != to_account_id:
            return False
        return True

    def _build_result(self, transfer: Transfer) -> TransferResult:
        sender = transfer.sender
        recipient = transfer.recipient
        account = transfer.destination_account
        return TransferResult(
            transfer_id=transfer.id,
            transfer_reference=transfer.reference,
            amount=transfer.amount,
            source=transfer.source,
            source_account_id=transfer.source_account_id,
            note=transfer.note or "",
            is_self_transfer=transfer.is_self_transfer,
            destination_type=transfer.destination_type,
            destination_details=DestinationDetails(
                type=transfer.destination_type,
                account_id=account.id if account else None,
                bank_name=account.bank_name if account else None,
            ),
            transfer_date=transfer.created_at,
            sender=PartyInfo(
                user_id=sender.id, name=sender.display_name, email=sender.email
            ),
            recipient=PartyInfo(
                user_id=recipient.id,
                name=recipient.display_name,
                email=recipient.email,
            ),
            updated_balances=UpdatedBalances(
                sender=self.balances.snapshot(sender.id),
                recipient=self.balances.snapshot(recipient.id),
            ),
        )

    # --- Lookup ---

    def find_user(self, current_user_id: int, identifier: str) -> FindUserResponse:
        """Find a transfer recipient by email, username, or full name."""
        identifier = (identifier or "").strip()
        if not identifier:
            raise InvalidRequest("Email, username, or name is required")

        user = self.db.execute(
            select(User)
            .where(
                or_(
                    User.email == identifier,
                    User.username == identifier,
                    User.full_name == identifier,
                ),
                User.id != current_user_id,
            )
            .order_by(User.id)
            .limit(1)
        ).scalar_one_or_none()

        if user is None:
            return FindUserResponse(found=False)
        return FindUserResponse(found=True, user=FoundUser(
            user_id=user.id,
            full_name=user.full_name,
            username=user.username,
            email=user.email,
            name=user.display_name,
        ))
