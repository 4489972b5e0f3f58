"""Pytest fixtures for the form mailer tests."""

import pytest

from app import create_app
from config.settings import TransportConfig
from core.errors import TransportSendError
from core.transport import MailTransport


class RecordingTransport(MailTransport):
    """Transport stub that keeps every message instead of sending it."""

    name = 'recording'

    def __init__(self, config=None, fail_with=None):
        super().__init__(config or TransportConfig())
        self.fail_with = fail_with
        self.messages = []

    def _deliver(self, msg):
        self.messages.append(msg)
        if self.fail_with is not None:
            raise self.fail_with
        return '250 OK queued'


@pytest.fixture
def transport_config():
    return TransportConfig(from_address='forms@palmtreesdigital.com', from_name='Funding Connect')


@pytest.fixture
def recorder(transport_config):
    return RecordingTransport(transport_config)


@pytest.fixture
def valid_form():
    return {
        'name': 'Jane Doe',
        'email': 'jane@x.com',
        'phone': '555-1111',
        'address': '1 Main St',
        'dealType': 'Bridge',
        'loanAmount': '500000',
        'details': 'Urgent',
    }


@pytest.fixture
def make_app(transport_config):
    def _make(transport, **overrides):
        overrides.setdefault('TRANSPORT', transport_config)
        overrides.setdefault('RECIPIENT', 'fundingconnect@palmtreesdigital.com')
        overrides.setdefault('SUCCESS_REDIRECT_URL', None)
        return create_app('testing', overrides=overrides, transport=transport)
    return _make


@pytest.fixture
def client(make_app, recorder):
    return make_app(recorder).test_client()


@pytest.fixture
def failing_recorder(transport_config):
    return RecordingTransport(transport_config, fail_with=TransportSendError('Connection refused'))


@pytest.fixture
def body_of():
    """Decode the plain-text payload of a composed message."""
    return lambda msg: msg.get_payload(decode=True).decode('utf-8')
