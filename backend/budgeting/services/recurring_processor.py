"""
Background processors that pay out due incomes and recurring expenses.

One processor runs per entity type, each on its own timer. Every sweep lists
all users and runs the due-processing batch for each of them; a failure for
one user is logged and the sweep moves on.
"""

import logging
import threading
from datetime import datetime
from typing import Callable, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from budgeting.clock import now_utc
from budgeting.config import settings
from budgeting.database import SessionLocal
from budgeting.errors import BatchAbortedError, BudgetingError
from budgeting.services import expense_service, income_service, user_service

logger = logging.getLogger(__name__)

ProcessDue = Callable[[Session, str, datetime], int]


class RecurringProcessor:
    """Fixed-interval sweep over all users for one kind of recurring entry."""

    def __init__(
        self,
        name: str,
        process_due: ProcessDue,
        session_factory: Callable[[], Session] = SessionLocal,
        list_user_ids: Callable[[Session], List[str]] = user_service.list_all_user_ids,
        interval_seconds: Optional[float] = None,
        clock: Callable[[], datetime] = now_utc,
    ):
        self.name = name
        self._process_due = process_due
        self._session_factory = session_factory
        self._list_user_ids = list_user_ids
        self._interval = interval_seconds if interval_seconds is not None else settings.scheduler_interval_seconds
        self._clock = clock
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def run_once(self, now: Optional[datetime] = None) -> Dict[str, int]:
        """
        Sweep every user once and return the number of entries created per user.
        Users whose batch failed are left out of the result.
        """
        now = now or self._clock()
        logger.info("Processing recurring %s...", self.name)

        results: Dict[str, int] = {}
        session = self._session_factory()
        try:
            try:
                user_ids = self._list_user_ids(session)
            except SQLAlchemyError:
                logger.exception("Failed to list all user IDs for recurring %s", self.name)
                return results

            for user_id in user_ids:
                if self._stop_event.is_set():
                    logger.info("Stop requested, ending %s sweep early", self.name)
                    break
                try:
                    count = self._process_due(session, user_id, now)
                except BatchAbortedError as e:
                    logger.error(
                        "Failed to process due %s for user %s after %d created: %s",
                        self.name, user_id, e.created, e
                    )
                    continue
                except (BudgetingError, SQLAlchemyError) as e:
                    session.rollback()
                    logger.error("Failed to process due %s for user %s: %s", self.name, user_id, e)
                    continue

                results[user_id] = count
                if count > 0:
                    logger.info("Processed %d recurring %s for user %s", count, self.name, user_id)
        finally:
            session.close()

        logger.info("Finished processing recurring %s.", self.name)
        return results

    def start(self, run_immediately: bool = False) -> None:
        """Start the timer loop in a daemon thread. No-op if already running."""
        if self.is_running:
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run_loop,
            args=(run_immediately,),
            name=f"recurring-{self.name}",
            daemon=True,
        )
        self._thread.start()
        logger.info("Recurring %s processor started (interval %ss)", self.name, self._interval)

    def stop(self, timeout: Optional[float] = None) -> None:
        """Signal the loop to stop and wait for the current sweep to finish."""
        self._stop_event.set()
        if self._thread is not None and self._thread.is_alive():
            self._thread.join(timeout=timeout if timeout is not None else settings.scheduler_stop_timeout_seconds)
            if self._thread.is_alive():
                logger.warning("Recurring %s processor did not stop within the timeout", self.name)
        logger.info("Recurring %s processor stopped", self.name)

    def _run_loop(self, run_immediately: bool) -> None:
        if run_immediately:
            self._safe_run()
        while not self._stop_event.wait(self._interval):
            self._safe_run()

    def _safe_run(self) -> None:
        try:
            self.run_once()
        except Exception:
            # Keep the timer alive; the next tick retries
            logger.exception("Recurring %s sweep failed", self.name)


def build_income_processor(**kwargs) -> RecurringProcessor:
    return RecurringProcessor("incomes", income_service.process_due_incomes, **kwargs)


def build_expense_processor(**kwargs) -> RecurringProcessor:
    return RecurringProcessor("expenses", expense_service.process_due_expenses, **kwargs)
