"""intentgate: a policy gate for AI agent tool calls."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

__version__ = "0.1.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())

if TYPE_CHECKING:
    from intentgate.audit.logger import AuditLogger as AuditLogger
    from intentgate.audit.logger import create_audit_logger as create_audit_logger
    from intentgate.core.gate import Gate as Gate
    from intentgate.core.gate import create_gate as create_gate
    from intentgate.core.intent import create_intent as create_intent
    from intentgate.policy.loader import load_gate as load_gate

_EXPORTS = {
    "Gate": "intentgate.core.gate",
    "create_gate": "intentgate.core.gate",
    "create_intent": "intentgate.core.intent",
    "AuditLogger": "intentgate.audit.logger",
    "create_audit_logger": "intentgate.audit.logger",
    "load_gate": "intentgate.policy.loader",
}


def __getattr__(name: str) -> object:
    module_path = _EXPORTS.get(name)
    if module_path is not None:
        import importlib

        mod = importlib.import_module(module_path)
        return getattr(mod, name)
    raise AttributeError(f"module 'intentgate' has no attribute {name!r}")
