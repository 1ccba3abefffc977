"""Context object shared across worker threads."""

from dataclasses import dataclass

from preview_server.bootstrap.config import ServerConfig
from preview_server.handlers.file_resolver import FileResolver
from preview_server.lifecycle.state import ServerLifecycle
from preview_server.transport.admission import AdmissionGate


@dataclass
class WorkerContext:
    """Dependencies handed to every worker at spawn time."""

    config: ServerConfig
    resolver: FileResolver
    lifecycle: ServerLifecycle
    gate: AdmissionGate
