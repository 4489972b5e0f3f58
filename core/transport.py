# core/transport.py
"""
Mail transports for funding request notifications

Two delivery mechanisms are supported, chosen by configuration only:
- SMTP through aiosmtplib, with STARTTLS, implicit TLS or no encryption
- the local mail facility, by piping the message to sendmail

Each transport makes exactly one synchronous delivery attempt. Failures
never escape send(); they come back as a SendResult whose status tells a
configuration problem apart from a failed hand-off.
"""

import asyncio
import logging
import subprocess
from dataclasses import dataclass
from email.message import Message
from enum import Enum
from typing import Optional

import aiosmtplib

from config.settings import TransportConfig
from core.errors import TransportConfigurationError, TransportSendError

logger = logging.getLogger(__name__)


class SendStatus(Enum):
    """Outcome of a single delivery attempt"""
    SENT = "sent"
    CONFIGURATION_ERROR = "configuration_error"
    SEND_FAILED = "send_failed"


@dataclass
class SendResult:
    """Result of one send attempt"""
    status: SendStatus
    transport: str
    response: Optional[str] = None
    error_message: Optional[str] = None
    smtp_code: Optional[int] = None

    @property
    def temporary(self) -> bool:
        """4xx replies are transient per RFC 5321; a later attempt may succeed"""
        return self.smtp_code is not None and 400 <= self.smtp_code < 500

    @property
    def success(self) -> bool:
        return self.status == SendStatus.SENT


class MailTransport:
    """Base class: subclasses implement _deliver() and raise on failure"""

    name = 'base'

    def __init__(self, config: TransportConfig):
        self.config = config

    def describe(self) -> dict:
        """Non-secret summary of the transport settings for logging"""
        return {'transport': self.name}

    def _deliver(self, msg: Message) -> Optional[str]:
        raise NotImplementedError

    def send(self, msg: Message) -> SendResult:
        """
        Attempt delivery once

        Returns:
            SendResult with status SENT, CONFIGURATION_ERROR or SEND_FAILED
        """
        try:
            response = self._deliver(msg)
        except TransportConfigurationError as e:
            logger.error(f"{self.name} transport misconfigured: {e}")
            return SendResult(SendStatus.CONFIGURATION_ERROR, self.name, error_message=str(e))
        except Exception as e:
            logger.error(f"{self.name} transport failed to send: {e!r}", exc_info=True)
            return SendResult(SendStatus.SEND_FAILED, self.name, error_message=str(e),
                              smtp_code=e.code if isinstance(e, aiosmtplib.SMTPResponseException) else None)

        logger.info(f"Message handed off via {self.name}: {response or 'ok'}")
        return SendResult(SendStatus.SENT, self.name, response=response)


class SMTPTransport(MailTransport):
    """SMTP delivery with optional authentication"""

    name = 'smtp'

    def describe(self) -> dict:
        return {
            'transport': self.name,
            'host': self.config.smtp_host,
            'port': self.config.smtp_port,
            'encryption': self.config.smtp_encryption,
            'auth': bool(self.config.smtp_username),
        }

    def _client(self) -> aiosmtplib.SMTP:
        encryption = self.config.smtp_encryption
        return aiosmtplib.SMTP(
            hostname=self.config.smtp_host,
            port=self.config.smtp_port,
            timeout=self.config.smtp_timeout,
            use_tls=encryption == 'ssl',
            start_tls=encryption == 'tls',
        )

    def _trace(self, message: str) -> None:
        if self.config.smtp_debug:
            logger.debug(message)

    async def _async_send(self, msg: Message) -> str:
        smtp = self._client()
        self._trace(f"SMTP connect to {self.config.smtp_host}:{self.config.smtp_port} "
                    f"(encryption={self.config.smtp_encryption})")
        await smtp.connect()
        try:
            # Only log in when credentials are configured
            if self.config.smtp_username:
                self._trace(f"SMTP login as {self.config.smtp_username}")
                try:
                    await smtp.login(self.config.smtp_username, self.config.smtp_password or '')
                except aiosmtplib.SMTPAuthenticationError as e:
                    raise TransportConfigurationError(f"SMTP login rejected: {e}")
            errors, response = await smtp.send_message(msg)
            self._trace(f"SMTP send_message response: {response}")
            if errors:
                raise TransportSendError(f"Recipients refused: {errors}")
            return response
        finally:
            try:
                await smtp.quit()
            except aiosmtplib.SMTPException as e:
                logger.debug(f"SMTP quit failed: {e}")

    def _deliver(self, msg: Message) -> Optional[str]:
        if not self.config.smtp_host:
            raise TransportConfigurationError("SMTP_HOST is not configured")

        return asyncio.run(self._async_send(msg))


class LocalMailTransport(MailTransport):
    """Delivery through the local sendmail binary"""

    name = 'local'

    def describe(self) -> dict:
        return {'transport': self.name, 'sendmail_path': self.config.sendmail_path}

    def _deliver(self, msg: Message) -> Optional[str]:
        command = [self.config.sendmail_path, '-t', '-i']
        try:
            completed = subprocess.run(
                command,
                input=msg.as_bytes(policy=msg.policy.clone(linesep="\n")),
                capture_output=True,
                timeout=self.config.smtp_timeout,
                check=False,
            )
        except FileNotFoundError:
            raise TransportConfigurationError(
                f"sendmail not found at {self.config.sendmail_path}"
            )

        if completed.returncode != 0:
            stderr = completed.stderr.decode('utf-8', 'replace').strip()
            raise TransportSendError(
                f"sendmail exited with status {completed.returncode}: {stderr}"
            )
        return None


class MisconfiguredTransport(MailTransport):
    """Stands in when SMTP is mandatory but no host is set"""

    name = 'unconfigured'

    def _deliver(self, msg: Message) -> Optional[str]:
        raise TransportConfigurationError("SMTP_REQUIRED is set but SMTP_HOST is not configured")


def select_transport(config: TransportConfig) -> MailTransport:
    """
    Pick the transport for the given settings

    SMTP when a host is configured; otherwise local mail, unless SMTP is
    mandated, in which case every send reports a configuration error.
    """
    if config.uses_smtp:
        return SMTPTransport(config)
    if config.smtp_required:
        return MisconfiguredTransport(config)
    return LocalMailTransport(config)
