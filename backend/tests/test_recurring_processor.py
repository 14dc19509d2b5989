"""Tests for the background recurring processors."""

import threading
import pytest
from datetime import date, datetime
from unittest.mock import MagicMock

from sqlalchemy.exc import OperationalError

from budgeting.errors import BatchAbortedError, ValidationError
from budgeting.models.expense import Expense
from budgeting.models.income import Income
from budgeting.services.recurring_processor import (
    RecurringProcessor,
    build_expense_processor,
    build_income_processor,
)
from budgeting.services.user_service import list_all_user_ids


NOW = datetime(2024, 1, 1, 0, 5)


def make_processor(process_due, user_ids=("u1", "u2", "u3"), **kwargs):
    kwargs.setdefault("session_factory", MagicMock)
    return RecurringProcessor(
        "incomes",
        process_due,
        list_user_ids=lambda session: list(user_ids),
        clock=lambda: NOW,
        **kwargs
    )


class TestRunOnce:
    """Test a single sweep over all users."""

    def test_processes_every_user(self):
        seen = []

        def process_due(session, user_id, now):
            seen.append((user_id, now))
            return 1

        results = make_processor(process_due).run_once()

        assert results == {"u1": 1, "u2": 1, "u3": 1}
        assert seen == [("u1", NOW), ("u2", NOW), ("u3", NOW)]

    def test_failing_user_does_not_block_others(self):
        def process_due(session, user_id, now):
            if user_id == "u1":
                raise BatchAbortedError("insert failed", created=2)
            if user_id == "u2":
                raise ValidationError("bad user")
            return 3

        results = make_processor(process_due).run_once()

        assert results == {"u3": 3}

    def test_database_error_rolls_back_and_continues(self):
        session = MagicMock()

        def process_due(s, user_id, now):
            if user_id == "u1":
                raise OperationalError("SELECT", {}, Exception("locked"))
            return 0

        results = make_processor(process_due, session_factory=lambda: session).run_once()

        assert results == {"u2": 0, "u3": 0}
        session.rollback.assert_called_once()
        session.close.assert_called_once()

    def test_user_listing_failure_skips_sweep(self):
        session = MagicMock()
        process_due = MagicMock()

        def broken_listing(s):
            raise OperationalError("SELECT", {}, Exception("no such table"))

        processor = RecurringProcessor(
            "expenses", process_due, session_factory=lambda: session, list_user_ids=broken_listing
        )

        assert processor.run_once(NOW) == {}
        process_due.assert_not_called()
        session.close.assert_called_once()

    def test_explicit_now_overrides_clock(self):
        process_due = MagicMock(return_value=0)
        when = datetime(2024, 6, 1, 12, 0)

        make_processor(process_due, user_ids=["u1"]).run_once(when)

        assert process_due.call_args[0][1:] == ("u1", when)

    def test_unexpected_error_propagates_from_run_once(self):
        def process_due(session, user_id, now):
            raise RuntimeError("bug")

        with pytest.raises(RuntimeError):
            make_processor(process_due).run_once()


class TestProcessorsAgainstDatabase:
    """Run the real batches through a processor."""

    def test_income_and_expense_sweeps(
        self, db_session, sample_income_source, sample_recurring_expense,
        other_user, make_income_source
    ):
        make_income_source("u2", next_pay_at=date(2024, 1, 1))

        def factory():
            return db_session

        # Closing the shared test session between sweeps is harmless
        incomes = build_income_processor(session_factory=factory, list_user_ids=list_all_user_ids)
        expenses = build_expense_processor(session_factory=factory, list_user_ids=list_all_user_ids)

        assert incomes.run_once(datetime(2024, 1, 1, 0, 5)) == {"u1": 1, "u2": 1}
        assert expenses.run_once(datetime(2024, 1, 1, 0, 5)) == {"u1": 0, "u2": 0}
        assert expenses.run_once(datetime(2024, 1, 31, 0, 5)) == {"u1": 1, "u2": 0}

        assert db_session.query(Income).count() == 2
        assert db_session.query(Expense).filter(Expense.is_recurring == False).count() == 1


class TestTimerLoop:
    """Test starting and stopping the background thread."""

    def test_runs_on_interval_until_stopped(self):
        ticks = threading.Event()
        calls = []

        def process_due(session, user_id, now):
            calls.append(user_id)
            if len(calls) >= 2:
                ticks.set()
            return 0

        processor = make_processor(process_due, user_ids=["u1"], interval_seconds=0.01)
        processor.start()
        try:
            assert ticks.wait(5)
            assert processor.is_running
        finally:
            processor.stop(timeout=5)

        assert not processor.is_running

    def test_first_sweep_waits_one_interval(self):
        process_due = MagicMock(return_value=0)
        processor = make_processor(process_due, interval_seconds=60)

        processor.start()
        processor.stop(timeout=5)

        process_due.assert_not_called()
        assert not processor.is_running

    def test_run_immediately(self):
        done = threading.Event()

        def process_due(session, user_id, now):
            done.set()
            return 0

        processor = make_processor(process_due, user_ids=["u1"], interval_seconds=60)
        processor.start(run_immediately=True)
        try:
            assert done.wait(5)
        finally:
            processor.stop(timeout=5)

    def test_stop_request_ends_sweep_early(self):
        """Users after the stop request are not processed."""
        seen = []

        def process_due(session, user_id, now):
            seen.append(user_id)
            processor.stop()
            return 0

        processor = make_processor(process_due)
        results = processor.run_once()

        assert seen == ["u1"]
        assert results == {"u1": 0}

    def test_crashing_sweep_keeps_timer_alive(self):
        ticks = threading.Event()
        calls = []

        def process_due(session, user_id, now):
            calls.append(user_id)
            if len(calls) >= 2:
                ticks.set()
            raise RuntimeError("bug")

        processor = make_processor(process_due, user_ids=["u1"], interval_seconds=0.01)
        processor.start()
        try:
            assert ticks.wait(5)
        finally:
            processor.stop(timeout=5)

    def test_stop_before_start(self):
        processor = make_processor(MagicMock())
        processor.stop()
        assert not processor.is_running

    def test_start_twice_keeps_one_thread(self):
        processor = make_processor(MagicMock(return_value=0), interval_seconds=60)
        processor.start()
        try:
            thread = processor._thread
            processor.start()
            assert processor._thread is thread
        finally:
            processor.stop(timeout=5)
