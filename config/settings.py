# config/settings.py
"""
Environment-sourced configuration for the funding request form mailer

The transport settings are read once, when the application is built, and
handed to the submission handler as an immutable TransportConfig.
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional


DEFAULT_RECIPIENT = 'fundingconnect@palmtreesdigital.com'
DEFAULT_SMTP_PORT = 587
DEFAULT_SENDMAIL_PATH = '/usr/sbin/sendmail'

# Accepted spellings for SMTP_ENCRYPTION, mapped to the canonical mode
ENCRYPTION_MODES = {
    'tls': 'tls',
    'starttls': 'tls',
    'ssl': 'ssl',
    'smtps': 'ssl',
    'none': 'none',
    'off': 'none',
    '': 'tls',
}

_TRUTHY = {'1', 'true', 'yes', 'on'}


def env_flag(value: Optional[str], default: bool = False) -> bool:
    """Interpret an environment string as a boolean"""
    if value is None:
        return default
    return value.strip().lower() in _TRUTHY


def env_int(value: Optional[str], default: int) -> int:
    """Interpret an environment string as an int, falling back on bad input"""
    try:
        return int((value or '').strip())
    except ValueError:
        return default


def _clean(value: Optional[str]) -> Optional[str]:
    value = (value or '').strip()
    return value or None


@dataclass(frozen=True)
class TransportConfig:
    """Read-only mail transport settings"""
    from_address: Optional[str] = None
    from_name: Optional[str] = None
    smtp_host: Optional[str] = None
    smtp_port: int = DEFAULT_SMTP_PORT
    smtp_username: Optional[str] = None
    smtp_password: Optional[str] = None
    smtp_encryption: str = 'tls'
    smtp_debug: bool = False
    smtp_timeout: float = 20.0
    smtp_required: bool = False
    sendmail_path: str = DEFAULT_SENDMAIL_PATH

    @property
    def uses_smtp(self) -> bool:
        return bool(self.smtp_host)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'TransportConfig':
        """
        Build transport settings from environment variables

        Args:
            environ: Mapping to read from, defaults to os.environ

        Raises:
            ValueError: If SMTP_ENCRYPTION names an unknown mode
        """
        environ = os.environ if environ is None else environ

        encryption = (environ.get('SMTP_ENCRYPTION') or '').strip().lower()
        if encryption not in ENCRYPTION_MODES:
            raise ValueError(f"Unsupported SMTP_ENCRYPTION: {encryption!r}")

        try:
            timeout = float(environ.get('SMTP_TIMEOUT') or 20)
        except ValueError:
            timeout = 20.0

        return cls(
            from_address=_clean(environ.get('MAIL_FROM_ADDRESS')),
            from_name=_clean(environ.get('MAIL_FROM_NAME')),
            smtp_host=_clean(environ.get('SMTP_HOST')),
            smtp_port=env_int(environ.get('SMTP_PORT'), DEFAULT_SMTP_PORT),
            smtp_username=_clean(environ.get('SMTP_USERNAME')),
            smtp_password=environ.get('SMTP_PASSWORD') or None,
            smtp_encryption=ENCRYPTION_MODES[encryption],
            smtp_debug=env_flag(environ.get('SMTP_DEBUG')),
            smtp_timeout=timeout,
            smtp_required=env_flag(environ.get('SMTP_REQUIRED')),
            sendmail_path=_clean(environ.get('SENDMAIL_PATH')) or DEFAULT_SENDMAIL_PATH,
        )


class FormMailerConfig:
    """Flask configuration for the form mailer"""

    RECIPIENT = DEFAULT_RECIPIENT

    # Unset means the result page is rendered inline after a successful send
    SUCCESS_REDIRECT_URL = None
    FORM_URL = 'index.html'

    LOG_LEVEL = 'INFO'
    LOG_FILE = None
    AUDIT_LOG_FILE = None

    # Form posts are small; anything bigger is rejected with 413
    MAX_CONTENT_LENGTH = 64 * 1024

    SECURITY_HEADERS = {
        'X-Content-Type-Options': 'nosniff',
        'X-Frame-Options': 'DENY',
        'Referrer-Policy': 'strict-origin-when-cross-origin',
        'Content-Security-Policy': "default-src 'self'; style-src 'self' 'unsafe-inline'",
    }

    TRANSPORT = TransportConfig()

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> dict:
        """Collect config overrides from the environment as a dict for app.config"""
        environ = os.environ if environ is None else environ
        return {
            'RECIPIENT': _clean(environ.get('FORM_RECIPIENT')) or cls.RECIPIENT,
            'SUCCESS_REDIRECT_URL': _clean(environ.get('SUCCESS_REDIRECT_URL')),
            'FORM_URL': _clean(environ.get('FORM_URL')) or cls.FORM_URL,
            'LOG_LEVEL': (_clean(environ.get('LOG_LEVEL')) or cls.LOG_LEVEL).upper(),
            'LOG_FILE': _clean(environ.get('LOG_FILE')),
            'AUDIT_LOG_FILE': _clean(environ.get('AUDIT_LOG_FILE')),
            'TRANSPORT': TransportConfig.from_env(environ),
        }


class TestingConfig(FormMailerConfig):
    """Configuration used by the test suite"""
    TESTING = True
    LOG_LEVEL = 'DEBUG'
