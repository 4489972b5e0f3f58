import pytest

from config.settings import DEFAULT_RECIPIENT, FormMailerConfig, TransportConfig


def test_transport_defaults_from_empty_environment():
    config = TransportConfig.from_env({})
    assert config.smtp_host is None
    assert config.smtp_port == 587
    assert config.smtp_encryption == 'tls'
    assert config.smtp_debug is False
    assert config.uses_smtp is False


def test_transport_reads_smtp_settings():
    config = TransportConfig.from_env({
        'MAIL_FROM_ADDRESS': 'forms@palmtreesdigital.com',
        'MAIL_FROM_NAME': 'Funding Connect',
        'SMTP_HOST': 'smtp.example.org',
        'SMTP_PORT': '465',
        'SMTP_USERNAME': 'mailer',
        'SMTP_PASSWORD': 's3cret',
        'SMTP_ENCRYPTION': 'SSL',
        'SMTP_DEBUG': 'true',
    })
    assert config.uses_smtp
    assert config.smtp_port == 465
    assert config.smtp_encryption == 'ssl'
    assert config.smtp_debug is True
    assert config.from_name == 'Funding Connect'


@pytest.mark.parametrize('raw, expected', [('starttls', 'tls'), ('smtps', 'ssl'), ('none', 'none')])
def test_encryption_aliases(raw, expected):
    assert TransportConfig.from_env({'SMTP_ENCRYPTION': raw}).smtp_encryption == expected


def test_unknown_encryption_rejected():
    with pytest.raises(ValueError):
        TransportConfig.from_env({'SMTP_ENCRYPTION': 'rot13'})


def test_bad_port_falls_back_to_default():
    assert TransportConfig.from_env({'SMTP_PORT': 'smtp'}).smtp_port == 587


def test_blank_values_are_unset():
    config = TransportConfig.from_env({'SMTP_HOST': '   ', 'MAIL_FROM_ADDRESS': ''})
    assert config.smtp_host is None
    assert config.from_address is None


def test_form_config_from_env():
    values = FormMailerConfig.from_env({
        'SUCCESS_REDIRECT_URL': '/thank-you.html',
        'LOG_LEVEL': 'debug',
        'SMTP_REQUIRED': '1',
    })
    assert values['RECIPIENT'] == DEFAULT_RECIPIENT
    assert values['SUCCESS_REDIRECT_URL'] == '/thank-you.html'
    assert values['LOG_LEVEL'] == 'DEBUG'
    assert values['TRANSPORT'].smtp_required is True
