"""Retrying transaction boundary.

All writes to the booked counter and to attendance state go through
:func:`run_transaction`. A transaction-conflict failure from the storage
layer is retried with exponential backoff; nothing commits until the unit
of work completes.
"""

import logging
import time
from collections.abc import Callable
from typing import TypeVar

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from clubpass.core.errors import ContentionError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def run_transaction(
    db: Session,
    work: Callable[[], T],
    *,
    attempts: int,
    backoff: float,
    label: str = "transaction",
) -> T:
    """Run ``work`` inside a fresh transaction, retrying on conflicts.

    Any transaction already open on the session (for example the read used
    by a pre-check) is rolled back first so every attempt starts from the
    latest committed state. Domain errors raised by ``work`` roll back and
    propagate unchanged.

    Raises:
        ContentionError: If every attempt failed with a storage conflict.
    """
    for attempt in range(1, attempts + 1):
        if db.in_transaction():
            db.rollback()
        try:
            with db.begin():
                return work()
        except OperationalError as exc:
            if attempt >= attempts:
                logger.error("%s gave up after %d attempts: %s", label, attempt, exc.orig)
                raise ContentionError() from exc
            delay = backoff * 2 ** (attempt - 1)
            logger.warning(
                "%s conflict on attempt %d/%d, retrying in %.3fs: %s",
                label,
                attempt,
                attempts,
                delay,
                exc.orig,
            )
            time.sleep(delay)
    raise ContentionError()
