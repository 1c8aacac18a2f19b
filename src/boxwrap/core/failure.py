"""Classification of failures that reach the top-level boundary.

The boundary does not format what it cannot classify: anything that is
not a :class:`~boxwrap.exceptions.BoxwrapError` becomes an
``UNCLASSIFIED`` record and is re-raised by the caller.
"""

from __future__ import annotations

from boxwrap.core.models import FailureKind, FailureRecord
from boxwrap.exceptions import BoxwrapError

UNDECLARED_STATUS: int = 255


def classify_failure(exc: BaseException, *, dispatcher_ready: bool) -> FailureRecord:
    """Build the :class:`FailureRecord` for *exc*.

    *dispatcher_ready* tells whether a dispatch context (and with it a UI)
    exists to render the error through.
    """
    if not isinstance(exc, BoxwrapError):
        return FailureRecord(kind=FailureKind.UNCLASSIFIED, message=str(exc), cause=exc)

    kind = FailureKind.DOMAIN_ERROR if dispatcher_ready else FailureKind.PRE_INIT_ERROR
    return FailureRecord(
        kind=kind,
        message=exc.message,
        cause=exc,
        status_code=exc.status_code,
    )


def exit_code_for(record: FailureRecord) -> int:
    """Return the declared status code, or 255 when none was declared."""
    if record.status_code is None:
        return UNDECLARED_STATUS
    return record.status_code
