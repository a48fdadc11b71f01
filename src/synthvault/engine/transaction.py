"""Operation guard and rollback journal.

Each mutating entry point runs as one indivisible unit:
- OperationGuard serializes mutating operations and refuses re-entry from the
  thread that already holds it
- RollbackJournal checkpoints the ledger and records compensating actions for
  external effects; on failure it undoes them in reverse order
"""

import logging
import threading
from contextlib import contextmanager
from typing import Callable, List, Optional, Tuple

from ..errors import ReentrantCall
from .ledger import LedgerCheckpoint, PositionLedger

log = logging.getLogger(__name__)


class OperationGuard:
    """Mutual exclusion for ledger-mutating operations."""

    def __init__(self):
        self._lock = threading.Lock()
        self._owner: Optional[int] = None

    @property
    def busy(self) -> bool:
        return self._owner is not None

    @contextmanager
    def hold(self, operation: str):
        """Hold the guard for one operation, released on every exit path."""
        if self._owner == threading.get_ident():
            raise ReentrantCall(f"{operation} called while another operation is in progress")
        with self._lock:
            self._owner = threading.get_ident()
            try:
                yield
            finally:
                self._owner = None

    @contextmanager
    def read(self):
        """Short critical section for copying a consistent snapshot."""
        if self._owner == threading.get_ident():
            # Reads from inside an operation see that operation's own state
            yield
            return
        with self._lock:
            yield


class RollbackJournal:
    """Undo log for one operation."""

    def __init__(self, ledger: PositionLedger, operation: str):
        """
        Initialize journal and checkpoint the ledger.

        Args:
            ledger: Ledger to restore on failure
            operation: Operation name for log messages
        """
        self.ledger = ledger
        self.operation = operation
        self.checkpoint: LedgerCheckpoint = ledger.checkpoint()
        self._compensations: List[Tuple[str, Callable[[], object]]] = []

    def on_rollback(self, description: str, action: Callable[[], object]):
        """Register an action that undoes an external effect."""
        self._compensations.append((description, action))

    def discard(self, description: str):
        """Drop a registered compensation that no longer applies."""
        self._compensations = [c for c in self._compensations if c[0] != description]

    def rollback(self):
        """Run compensations newest-first, then restore the ledger."""
        for description, action in reversed(self._compensations):
            try:
                action()
            except Exception:
                # Keep unwinding; the original error is what the caller sees
                log.exception("%s: compensation '%s' failed", self.operation, description)
        self._compensations.clear()
        self.ledger.restore(self.checkpoint)
        log.warning("%s: rolled back", self.operation)


@contextmanager
def atomic(guard: OperationGuard, ledger: PositionLedger, operation: str):
    """
    Run a mutating operation under the guard with rollback on any error.

    Yields:
        RollbackJournal for registering compensations
    """
    with guard.hold(operation):
        journal = RollbackJournal(ledger, operation)
        try:
            yield journal
        except BaseException:
            journal.rollback()
            raise
