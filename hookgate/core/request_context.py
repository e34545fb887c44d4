"""Request correlation id carried through logs.

The id is bound for the lifetime of one API request. Delivery chains started
by that request run as tasks created inside the binding, so their log lines
carry the same id.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from uuid import uuid4

_request_id_var: ContextVar[str | None] = ContextVar("hookgate_request_id", default=None)


def get_request_id() -> str | None:
    return _request_id_var.get()


@contextmanager
def request_id_context(request_id: str | None = None) -> Iterator[str]:
    """Bind a correlation id for the duration of the block and yield it.

    A fresh UUID is generated when ``request_id`` is empty.
    """
    bound = request_id or str(uuid4())
    token = _request_id_var.set(bound)
    try:
        yield bound
    finally:
        _request_id_var.reset(token)
