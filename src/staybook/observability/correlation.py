"""Correlation ID for request tracing.

The HTTP middleware opens a scope once per request; log records pick the
ID up from the context variable, so it also reaches threadpool-run
handlers.
"""

import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator

CORRELATION_ID_HEADER = "X-Correlation-ID"

_correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")


def get_correlation_id() -> str:
    return _correlation_id.get()


@contextmanager
def correlation_scope(cid: str | None = None) -> Iterator[str]:
    """Bind a correlation ID for the duration of the block.

    A fresh UUID is used when ``cid`` is empty. The previous value is
    restored on exit.
    """
    cid = cid or str(uuid.uuid4())
    token = _correlation_id.set(cid)
    try:
        yield cid
    finally:
        _correlation_id.reset(token)
