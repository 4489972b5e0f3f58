# core/handler.py
"""
Submission handler: the single-pass validate-then-send pipeline

The handler is framework independent. It receives the request method, the
form parameters and the request host, and returns a HandlerOutcome that the
web layer turns into a response. Every request ends in exactly one of
method_rejected, validation_failed, sent or send_failed.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping, Optional

from config.settings import TransportConfig, DEFAULT_RECIPIENT
from core.errors import SubmissionValidationError
from core.message import build_message
from core.submission import Submission
from core.transport import MailTransport, SendResult, select_transport
from services.audit import AuditLog

logger = logging.getLogger(__name__)


class OutcomeKind(Enum):
    """Terminal states of one request"""
    METHOD_REJECTED = "method_rejected"
    VALIDATION_FAILED = "validation_failed"
    SENT = "sent"
    SEND_FAILED = "send_failed"


@dataclass
class HandlerOutcome:
    """What happened to one request, and what to tell the client"""
    kind: OutcomeKind
    status_code: int
    message: Optional[str] = None
    submission: Optional[Submission] = None
    send_result: Optional[SendResult] = None
    headers: dict = field(default_factory=dict)

    @property
    def sent(self) -> bool:
        return self.kind == OutcomeKind.SENT


class SubmissionHandler:
    """
    Validate a funding request form and mail it to the fixed recipient

    Args:
        config: Transport settings, read once at construction
        recipient: Destination address for every submission
        transport: Overrides the transport selected from config
        audit: Decision-point log sink
    """

    ALLOWED_METHOD = 'POST'

    def __init__(self,
                 config: TransportConfig,
                 recipient: str = DEFAULT_RECIPIENT,
                 transport: Optional[MailTransport] = None,
                 audit: Optional[AuditLog] = None):
        self.config = config
        self.recipient = recipient
        self.transport = transport or select_transport(config)
        self.audit = audit or AuditLog()

    def reject_method(self, method: str) -> HandlerOutcome:
        self.audit.record('method_rejected', {'method': method})
        return HandlerOutcome(
            OutcomeKind.METHOD_REJECTED, 405, 'Method Not Allowed',
            headers={'Allow': self.ALLOWED_METHOD},
        )

    def handle(self, method: str, form: Mapping[str, str], host: Optional[str] = None) -> HandlerOutcome:
        """
        Run one submission through the pipeline

        Args:
            method: HTTP method of the request
            form: Raw form parameters
            host: Request host, used for the no-reply sender fallback

        Returns:
            HandlerOutcome describing the terminal state
        """
        if (method or '').upper() != self.ALLOWED_METHOD:
            return self.reject_method(method)

        try:
            submission = Submission.from_form(form)
        except SubmissionValidationError as e:
            event = 'invalid_email' if e.field == 'email' and e.reason != 'missing' else 'missing_field'
            self.audit.record(event, {'field': e.field, 'reason': e.reason})
            return HandlerOutcome(OutcomeKind.VALIDATION_FAILED, 400, e.message)

        msg = build_message(submission, self.recipient, self.config, host)

        self.audit.record('transport_selected', self.transport.describe())
        result = self.transport.send(msg)
        self.audit.record('send_result', {
            'transport': result.transport,
            'status': result.status.value,
            'recipient': self.recipient,
            'reply_to': submission.email,
            'error': result.error_message,
            'smtp_code': result.smtp_code,
        }, level=logging.INFO if result.success else logging.ERROR)

        if result.success:
            logger.info(f"Funding request from {submission.email} delivered via {result.transport}")
            return HandlerOutcome(OutcomeKind.SENT, 200, submission=submission, send_result=result)

        logger.warning(f"Funding request from {submission.email} not delivered: {result.status.value}")
        return HandlerOutcome(OutcomeKind.SEND_FAILED, 200, submission=submission, send_result=result)
