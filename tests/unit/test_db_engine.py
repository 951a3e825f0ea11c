"""Unit tests for engine initialization and the transactional session scope."""

import pytest
from sqlalchemy import func, select

from invoicing_kernel.db.engine import (
    create_tables,
    get_engine,
    get_session,
    get_session_factory,
    init_engine_from_url,
    reset_engine,
    session_scope,
)
from invoicing_kernel.models import CustomerAdvanceAccount


@pytest.fixture
def memory_engine():
    engine = init_engine_from_url("sqlite://")
    create_tables()
    yield engine
    reset_engine()


class TestEngineLifecycle:

    def test_uninitialized_access_raises(self):
        reset_engine()
        with pytest.raises(RuntimeError):
            get_engine()
        with pytest.raises(RuntimeError):
            get_session()
        with pytest.raises(RuntimeError):
            get_session_factory()

    def test_init_registers_engine(self, memory_engine):
        assert get_engine() is memory_engine
        assert memory_engine.dialect.name == "sqlite"
        session = get_session()
        session.close()

    def test_reset_forgets_engine(self, memory_engine):
        reset_engine()
        with pytest.raises(RuntimeError):
            get_engine()


class TestSessionScope:

    def test_commits_on_success(self, memory_engine):
        with session_scope() as session:
            session.add(CustomerAdvanceAccount(customer_id="CUST-1", currency="TND"))

        with session_scope(get_session_factory()) as session:
            count = session.execute(select(func.count(CustomerAdvanceAccount.id))).scalar_one()
        assert count == 1

    def test_rolls_back_and_reraises(self, memory_engine, captured_logs):
        with pytest.raises(ZeroDivisionError):
            with session_scope() as session:
                session.add(CustomerAdvanceAccount(customer_id="CUST-1", currency="TND"))
                session.flush()
                1 / 0

        with session_scope() as session:
            count = session.execute(select(func.count(CustomerAdvanceAccount.id))).scalar_one()
        assert count == 0
        rolled_back = next(r for r in captured_logs() if r["message"] == "transaction_rolled_back")
        assert rolled_back["exc_type"] == "ZeroDivisionError"
