# emr_core/common/side_effects.py
from __future__ import annotations

import functools
import logging
from typing import Any, Callable

from django.db import transaction

logger = logging.getLogger(__name__)


def run_best_effort(label: str, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> None:
    """
    Run a side effect of an already-committed write (audit row, notification).

    The call runs in its own savepoint so a failed insert never breaks an
    enclosing transaction. Failures are logged and dropped: nothing is
    returned and nothing is raised to the caller.
    """
    try:
        with transaction.atomic():
            fn(*args, **kwargs)
    except Exception:
        logger.exception("Best-effort side effect failed: %s", label)


def best_effort(label: str):
    """
    Decorator form of run_best_effort.
    Usage:
        @best_effort("notify.lab_result_completed")
        def notify(...): ...
    """
    def _decorator(fn: Callable[..., Any]) -> Callable[..., None]:
        @functools.wraps(fn)
        def _wrapper(*args: Any, **kwargs: Any) -> None:
            run_best_effort(label, fn, *args, **kwargs)
        return _wrapper
    return _decorator
