"""Result shape shared by every action.

Actions never raise to their caller. They return
    {"status": "ok", "data": ...}
or
    {"status": "error", "error": "<message>"}   (plus "problems" on validation)
"""

from __future__ import annotations

import copy
import functools
import logging
from collections.abc import Callable
from typing import Any, TypeVar

from ..errors import LedgerError, ValidationFailed

logger = logging.getLogger(__name__)

Result = dict[str, Any]
F = TypeVar("F", bound=Callable[..., Result])


def ok(data: Any = None) -> Result:
    result: Result = {"status": "ok"}
    if data is not None:
        result["data"] = data
    return result


def error(message: str, **extra: Any) -> Result:
    return {"status": "error", "error": message, **extra}


def action(failure_message: str, **fallback: Any) -> Callable[[F], F]:
    """Turn domain errors into error results and log anything unexpected.

    `fallback` keys are merged into error results (e.g. data=[] for listings),
    copied fresh for every call.
    """

    def decorate(fn: F) -> F:
        @functools.wraps(fn)
        def wrapper(*args: Any, **kwargs: Any) -> Result:
            try:
                return fn(*args, **kwargs)
            except ValidationFailed as exc:
                return error(exc.message, problems=exc.problems, **copy.deepcopy(fallback))
            except LedgerError as exc:
                return error(exc.message, **copy.deepcopy(fallback))
            except Exception:
                logger.exception("%s in %s", failure_message, fn.__name__)
                return error(failure_message, **copy.deepcopy(fallback))

        return wrapper  # type: ignore[return-value]

    return decorate


def require_valid(problems: list[str]) -> None:
    if problems:
        raise ValidationFailed(problems)
