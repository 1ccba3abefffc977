"""Per-connection request ids carried into log records via contextvars."""

import contextvars
import itertools
import logging
from typing import Any, MutableMapping, Optional

LOGGER_PREFIX = "preview_server."

_request_id_var: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "request_id", default=None
)
_request_sequence = itertools.count(1)


def next_request_id() -> str:
    """Return a process-unique, monotonically increasing request id."""
    return f"req-{next(_request_sequence)}"


def get_request_id() -> Optional[str]:
    return _request_id_var.get()


def set_request_id(request_id: str) -> None:
    _request_id_var.set(request_id)


def clear_request_id() -> None:
    _request_id_var.set(None)


class ComponentLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter that stamps every record with the request id and component."""

    def process(
        self, msg: str, kwargs: MutableMapping[str, Any]
    ) -> tuple[str, MutableMapping[str, Any]]:
        if "extra" not in kwargs:
            kwargs["extra"] = {}
        else:
            kwargs["extra"] = dict(kwargs["extra"])

        request_id = get_request_id()
        kwargs["extra"]["request_id"] = request_id if request_id is not None else "-"

        logger_name = self.logger.name
        if logger_name.startswith(LOGGER_PREFIX):
            component = logger_name[len(LOGGER_PREFIX) :]
        else:
            component = logger_name
        kwargs["extra"]["component"] = component

        return msg, kwargs


def component_logger(component: str) -> ComponentLoggerAdapter:
    """Build the adapter for ``preview_server.<component>``."""
    return ComponentLoggerAdapter(logging.getLogger(LOGGER_PREFIX + component), {})
