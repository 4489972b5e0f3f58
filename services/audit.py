# services/audit.py
"""
Decision-point audit trail for form submissions

Every decision the handler makes (method rejected, missing field, invalid
email, transport chosen, send result) is written as one line: the event
name followed by its context serialized as JSON.
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

AUDIT_LOGGER_NAME = 'formmailer.audit'

logger = logging.getLogger(__name__)


class AuditLog:
    """Append-only structured log sink"""

    def __init__(self, log: Optional[logging.Logger] = None):
        self.log = log or logging.getLogger(AUDIT_LOGGER_NAME)

    def record(self, event_type: str, details: Dict[str, Any] = None, level: int = logging.INFO) -> str:
        """
        Append one audit line

        Args:
            event_type: Decision point name, e.g. 'invalid_email'
            details: Additional context, serialized as JSON

        Returns:
            The line that was written
        """
        context = {'timestamp': datetime.now(timezone.utc).isoformat()}
        context.update(details or {})
        line = f"{event_type} {json.dumps(context, sort_keys=True, default=str)}"
        self.log.log(level, line)
        return line


def configure_audit_file(path: str, level: int = logging.INFO) -> logging.Handler:
    """
    Attach an append-mode file handler to the audit logger

    Re-configuring with the same path keeps a single handler.
    """
    audit_logger = logging.getLogger(AUDIT_LOGGER_NAME)
    target = str(Path(path).resolve())

    for handler in audit_logger.handlers:
        if isinstance(handler, logging.FileHandler) and handler.baseFilename == target:
            return handler

    Path(target).parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(target, mode='a', encoding='utf-8')
    handler.setFormatter(logging.Formatter(
        fmt='[%(asctime)s] %(levelname)s %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    ))
    handler.setLevel(level)
    audit_logger.addHandler(handler)
    audit_logger.setLevel(level)

    logger.info(f"Audit log writing to {target}")
    return handler
