"""
Request-scoped logging.

Store calls log through ordinary module loggers. The request id of the unit of
work currently executing lives in a ContextVar, so concurrent requests running
on the same event loop each see their own id. RequestIdFilter copies it onto
every record so handlers can format it.
"""

import logging
import sys
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator, Optional, Union

from .config import DynamoDBConfig

request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

LOG_FORMAT = "%(asctime)s %(levelname)s [%(request_id)s] %(name)s: %(message)s"


def get_request_id() -> Optional[str]:
    return request_id_var.get()


@contextmanager
def request_scope(request_id: Optional[str] = None) -> Iterator[str]:
    """Bind a request id to the current context for the duration of the block.

    Args:
        request_id: Inbound request id; a UUID4 is generated when empty

    Yields:
        The request id in effect
    """
    request_id = (request_id or "").strip() or str(uuid.uuid4())
    token = request_id_var.set(request_id)
    try:
        yield request_id
    finally:
        request_id_var.reset(token)


class RequestIdFilter(logging.Filter):
    """Stamp the current request id (or '-') onto each log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = get_request_id() or "-"
        return True


def configure_logging(
    level: Union[str, int] = "INFO",
    debug: bool = False,
    config: Optional[DynamoDBConfig] = None
) -> None:
    """Install a stdout handler that includes the request id in every line.

    Args:
        level: Root log level
        debug: Force DEBUG regardless of level
        config: Forces DEBUG as well when its enable_debug_logging is set
    """
    if config is not None and config.enable_debug_logging:
        debug = True

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(RequestIdFilter())
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(logging.DEBUG if debug else level)
