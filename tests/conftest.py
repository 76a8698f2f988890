"""
Shared test fixtures.

Sets up an isolated test database so tests never touch
the real database. Tables are created before each test and
dropped after it, so no test data persists.
"""

import itertools
import os
from decimal import Decimal

# Point the application at the test database before anything
# imports pocketbank.config.
TEST_DATABASE_URL = "sqlite:///./test.db"
os.environ.setdefault("DATABASE_URL", TEST_DATABASE_URL)

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

from pocketbank.main import app
from pocketbank.models import Account, User, Wallet
from pocketbank.models.base import Base, get_db
from pocketbank.services.balance_service import BalanceService


# SQLite keeps the suite free of external infrastructure.
# It ignores FOR UPDATE, so locking itself is not exercised
# here; the guarded updates are.
engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
)

TestSessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
)

_account_numbers = itertools.count(1)


@pytest.fixture(autouse=True)
def setup_database():
    """
    Create all tables before each test, drop them after.

    autouse=True means every test gets this automatically.
    """
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session():
    """Provide a database session for direct service testing."""
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def client(db_session):
    """
    Provide a test client with the test database.

    We override the get_db dependency so the FastAPI app
    uses our test session instead of the real database.
    """
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def session_factory():
    """For tests that need more than one session at a time."""
    return TestSessionLocal


@pytest.fixture
def db_engine():
    return engine


@pytest.fixture
def statement_counter():
    """Counts SQL statements sent through the test engine."""
    statements = []

    def record(conn, cursor, statement, parameters, context, executemany):
        statements.append(statement)

    event.listen(engine, "before_cursor_execute", record)
    yield statements
    event.remove(engine, "before_cursor_execute", record)


# --- Seed data ---

@pytest.fixture
def make_user(db_session):
    """
    Create a committed user with a wallet balance.

    A matching wallets mirror row is created too, as the
    application's sign-up flow would.
    """
    def _make_user(email, wallet="0.00", full_name=None, username=None):
        user = User(
            email=email,
            full_name=full_name,
            username=username,
            wallet_balance=Decimal(wallet),
            account_balance=Decimal("0.00"),
        )
        db_session.add(user)
        db_session.flush()
        db_session.add(Wallet(user_id=user.id, wallet_balance=Decimal(wallet)))
        db_session.commit()
        return user

    return _make_user


@pytest.fixture
def make_account(db_session):
    """Link a committed bank account holding `balance` to a user."""
    def _make_account(user, bank_name="HDFC Bank", balance="0.00",
                      is_primary=False, account_number=None):
        account = Account(
            user_id=user.id,
            bank_name=bank_name,
            account_number=account_number or f"5010{next(_account_numbers):08d}",
            balance=Decimal(balance),
            is_primary=is_primary,
        )
        db_session.add(account)
        db_session.flush()
        BalanceService(db_session).sync_account_balance(user.id)
        db_session.commit()
        return account

    return _make_account

