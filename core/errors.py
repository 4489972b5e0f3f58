# core/errors.py
"""
Exception hierarchy for the form mailer
"""


class FormMailerError(Exception):
    """Base exception for form mailer operations"""
    pass


class SubmissionValidationError(FormMailerError):
    """A submitted form failed validation; the message is shown to the visitor"""

    def __init__(self, message: str, field: str = None, reason: str = None):
        super().__init__(message)
        self.message = message
        self.field = field
        self.reason = reason


class TransportConfigurationError(FormMailerError):
    """A required transport setting is missing or invalid"""
    pass


class TransportSendError(FormMailerError):
    """The mail transport failed to hand the message off"""
    pass
