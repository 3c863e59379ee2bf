"""Request correlation IDs.

The ID lives in a context variable so it follows the request through
threadpool and async boundaries. Client supplied IDs are accepted only when
they are short printable tokens; anything else is replaced.
"""

import re
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator, Optional

NO_REQUEST_ID = "no-request-id"

_ACCEPTABLE_ID = re.compile(r"^[A-Za-z0-9._:-]{1,128}$")

_current: ContextVar[Optional[str]] = ContextVar("paperflow_request_id", default=None)


def new_request_id() -> str:
    return uuid.uuid4().hex


def resolve_request_id(incoming: Optional[str]) -> str:
    """Reuse a well-formed incoming ID, otherwise mint one."""
    if incoming and _ACCEPTABLE_ID.match(incoming):
        return incoming
    return new_request_id()


def get_request_id() -> str:
    return _current.get() or NO_REQUEST_ID


@contextmanager
def bound_request_id(request_id: str) -> Iterator[str]:
    token = _current.set(request_id)
    try:
        yield request_id
    finally:
        _current.reset(token)
