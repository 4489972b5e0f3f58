# core/submission.py
"""
Funding request submission: sanitization and validation

Each form field goes through its own sanitization policy before the
required-field and email-format gates run:
- text fields are trimmed and have HTML special characters escaped
- the loan amount keeps only digits and sign characters
- the email address is trimmed and strictly validated (syntax only)
"""

import re
from dataclasses import dataclass, asdict
from typing import Callable, Dict, Mapping, Optional

from email_validator import validate_email, EmailNotValidError
from markupsafe import escape

from core.errors import SubmissionValidationError


MISSING_FIELDS_MESSAGE = 'Please complete all required fields.'
INVALID_EMAIL_MESSAGE = 'Please provide a valid email address.'

# Form parameter name -> Submission attribute, in form order
FORM_FIELDS = {
    'name': 'name',
    'email': 'email',
    'phone': 'phone',
    'address': 'address',
    'dealType': 'deal_type',
    'loanAmount': 'loan_amount',
    'details': 'details',
}

REQUIRED_FIELDS = ('name', 'email', 'phone', 'address', 'dealType', 'loanAmount')

_NON_INTEGER_CHARS = re.compile(r'[^0-9+\-]')


def sanitize_text(value: Optional[str]) -> str:
    """Trim and escape & < > " ' for display"""
    return str(escape((value or '').strip()))


def sanitize_integer(value: Optional[str]) -> str:
    """Keep digits and sign characters only, e.g. '$500,000' -> '500000'"""
    return _NON_INTEGER_CHARS.sub('', (value or '').strip())


def sanitize_email(value: Optional[str]) -> str:
    return (value or '').strip()


FIELD_SANITIZERS: Dict[str, Callable[[Optional[str]], str]] = {
    'name': sanitize_text,
    'email': sanitize_email,
    'phone': sanitize_text,
    'address': sanitize_text,
    'dealType': sanitize_text,
    'loanAmount': sanitize_integer,
    'details': sanitize_text,
}


def normalize_email(address: str) -> str:
    """
    Strictly validate an email address and return its ASCII form

    Only the syntax is checked; no DNS lookups are made while the
    visitor waits for the response.

    Raises:
        SubmissionValidationError: If the address is not valid
    """
    try:
        result = validate_email(address, check_deliverability=False, allow_smtputf8=False)
    except EmailNotValidError as e:
        raise SubmissionValidationError(INVALID_EMAIL_MESSAGE, field='email', reason=str(e))
    return result.ascii_email


@dataclass(frozen=True)
class Submission:
    """One validated funding request"""
    name: str
    email: str
    phone: str
    address: str
    deal_type: str
    loan_amount: str
    details: str = ''

    @classmethod
    def from_form(cls, form: Mapping[str, str]) -> 'Submission':
        """
        Sanitize and validate raw form parameters

        Args:
            form: Request parameters keyed by form field name

        Returns:
            Validated Submission

        Raises:
            SubmissionValidationError: On the first failed gate, either a
                missing required field or an invalid email address
        """
        cleaned = {
            field: FIELD_SANITIZERS[field](form.get(field))
            for field in FORM_FIELDS
        }

        missing = [field for field in REQUIRED_FIELDS if not cleaned[field]]
        if missing:
            raise SubmissionValidationError(
                MISSING_FIELDS_MESSAGE, field=missing[0], reason='missing'
            )

        cleaned['email'] = normalize_email(cleaned['email'])

        return cls(**{FORM_FIELDS[field]: value for field, value in cleaned.items()})

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)
