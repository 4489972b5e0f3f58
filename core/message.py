# core/message.py
"""
Fixed-template email composition for funding requests
"""

import uuid
from email import policy
from email.message import EmailMessage
from email.utils import formataddr, formatdate
from typing import Optional

from config.settings import TransportConfig
from core.submission import Submission

X_MAILER = 'Funding Request Form Mailer/1.0'

BODY_TEMPLATE = (
    "A new funding request has been submitted:\n\n"
    "Name: {name}\n"
    "Email: {email}\n"
    "Phone: {phone}\n"
    "Property Address: {address}\n"
    "Deal Type: {deal_type}\n"
    "Loan Amount: {loan_amount}\n\n"
    "Deal Details:\n{details}\n"
)


def sanitize_header_value(value: Optional[str]) -> str:
    """Strip CR/LF so visitor input cannot inject extra headers"""
    return (value or '').replace('\r', '').replace('\n', ' ').strip()


def compose_subject(submission: Submission) -> str:
    return sanitize_header_value(f"New Funding Request from {submission.name}")


def compose_body(submission: Submission) -> str:
    """Render the plain-text body; values are embedded exactly as sanitized"""
    return BODY_TEMPLATE.format(**submission.to_dict())


def sender_domain(request_host: Optional[str]) -> str:
    """Host part of the request, without port, for the no-reply fallback"""
    host = (request_host or '').strip().lower()
    if host.startswith('['):
        # Bracketed IPv6 literal, keep the brackets
        host = host.split(']', 1)[0] + ']'
    else:
        host = host.split(':', 1)[0]
    return host or 'localhost'


def resolve_sender(config: TransportConfig, request_host: Optional[str]) -> str:
    """
    Resolve the From header value

    Uses MAIL_FROM_ADDRESS/MAIL_FROM_NAME when configured, otherwise
    no-reply@<request host>.
    """
    address = config.from_address or f"no-reply@{sender_domain(request_host)}"
    if config.from_name:
        return formataddr((sanitize_header_value(config.from_name), address))
    return address


def build_message(submission: Submission,
                  recipient: str,
                  config: TransportConfig,
                  request_host: Optional[str] = None) -> EmailMessage:
    """
    Create the notification email for a validated submission

    Args:
        submission: Validated form data
        recipient: Fixed destination address
        config: Transport settings used for the sender identity
        request_host: Host header of the incoming request

    Returns:
        Ready-to-send message
    """
    msg = EmailMessage(policy=policy.SMTP)
    msg.set_content(compose_body(submission))

    sender = resolve_sender(config, request_host)
    msg['Subject'] = compose_subject(submission)
    msg['From'] = sender
    msg['To'] = recipient
    msg['Reply-To'] = submission.email
    msg['Date'] = formatdate(localtime=True)
    msg['Message-ID'] = f"<{uuid.uuid4()}@{sender_domain(request_host)}>"
    msg['X-Mailer'] = X_MAILER

    return msg
