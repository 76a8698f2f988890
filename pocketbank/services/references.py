"""
Reference number generation.

References are short and human-shareable. Uniqueness is only
probabilistic; the database unique constraints catch the rare
collision, which then surfaces as an internal error.
"""

import secrets
import string
import time

_BASE36 = string.digits + string.ascii_uppercase


def _random_base36(length: int) -> str:
    return "".join(secrets.choice(_BASE36) for _ in range(length))


def transfer_reference() -> str:
    """TRF followed by 12 uppercase hex characters."""
    return "TRF" + secrets.token_hex(6).upper()


def history_reference() -> str:
    """TXN_<epoch millis>_<6 base36 chars> for audit records."""
    return f"TXN_{int(time.time() * 1000)}_{_random_base36(6)}"


def payment_reference() -> str:
    """TXN followed by 9 base36 characters, for bill payment ledger rows."""
    return "TXN" + _random_base36(9)
