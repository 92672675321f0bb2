"""
Outcome of best-effort side effects (host notifications, analytics, invite
delivery). These never block or roll back the primary action, but every
failure is logged where it happens.
"""

from dataclasses import dataclass
from typing import Any, Callable, Optional
import logging

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Outcome:
    ok: bool
    reason: Optional[str] = None
    value: Any = None

    @classmethod
    def success(cls, value: Any = None) -> "Outcome":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, reason: str) -> "Outcome":
        return cls(ok=False, reason=reason)


def run_best_effort(name: str, func: Callable[..., Any], *args, **kwargs) -> Outcome:
    """Call ``func`` and turn any error into a logged failure Outcome.

    ``func`` may itself return an Outcome; a failed one is logged the same way.
    """
    try:
        result = func(*args, **kwargs)
    except Exception as e:
        logger.warning(f"Best-effort side effect '{name}' failed: {e}")
        return Outcome.failure(str(e))
    if isinstance(result, Outcome):
        if not result.ok:
            logger.warning(f"Best-effort side effect '{name}' did not complete: {result.reason}")
        return result
    return Outcome.success(result)
