"""
Logging utilities shared by services and repositories.
"""

import logging
from contextvars import ContextVar
from typing import Any, Optional

# Context variables for request tracking
request_id: ContextVar[Optional[str]] = ContextVar('request_id', default=None)


class ContextAdapter(logging.LoggerAdapter):
    """Inject the current request id into every record"""

    def process(self, msg: Any, kwargs: Any):
        extra = dict(kwargs.pop("extra", None) or {})
        req_id = request_id.get()
        if req_id and "request_id" not in extra:
            extra["request_id"] = req_id
        kwargs["extra"] = {**(self.extra or {}), **extra}
        return msg, kwargs


def get_logger(name: str) -> ContextAdapter:
    """Get logger with request context"""
    if not name.startswith("servicedesk"):
        name = f"servicedesk.{name}"
    return ContextAdapter(logging.getLogger(name), {})
