"""
Error classification for the retry loop.

An error is retryable when:
- it does not declare ``retryable = False``, and
- its code or message contains one of the transient tags, or
- its HTTP-like status (``status_code`` or ``status``) is 429 or a 5xx
  other than 501.
"""

from typing import Iterable

NOT_IMPLEMENTED = 501


def _status_of(error: BaseException) -> int | None:
    for attr in ("status_code", "status"):
        value = getattr(error, attr, None)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    return None


def is_retryable_status(status: int) -> bool:
    return status == 429 or (500 <= status < 600 and status != NOT_IMPLEMENTED)


def is_retryable(error: BaseException, transient_errors: Iterable[str]) -> bool:
    if getattr(error, "retryable", None) is False:
        return False

    code = getattr(error, "code", None)
    code_text = str(code) if code is not None else ""
    message = str(error)
    for tag in transient_errors:
        if (code_text and tag in code_text) or tag in message:
            return True

    status = _status_of(error)
    return status is not None and is_retryable_status(status)
