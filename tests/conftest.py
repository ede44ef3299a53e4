"""Shared test fixtures for the mailgateway library."""

import pytest

from mailgateway import (
    MailgunOptions,
    Message,
    MockEmailProvider,
    SendGridOptions,
    Smtp2GoOptions,
    SmtpDeliveryMethod,
    SmtpOptions,
    SmtpProviderOptions,
    SocketLabsOptions,
)


@pytest.fixture
def pickup_options(tmp_path) -> SmtpProviderOptions:
    return SmtpProviderOptions(
        smtp_options=SmtpOptions(
            delivery_method=SmtpDeliveryMethod.SPECIFIED_PICKUP_DIRECTORY,
            pickup_directory_location=str(tmp_path),
        )
    )


@pytest.fixture
def network_options() -> SmtpProviderOptions:
    return SmtpProviderOptions(
        smtp_options=SmtpOptions(
            host="smtp.example.com",
            port=587,
            username="mailer",
            password="secret",
            use_starttls=True,
        )
    )


@pytest.fixture
def sendgrid_options() -> SendGridOptions:
    return SendGridOptions(api_key="SG.test_key_123")


@pytest.fixture
def smtp2go_options() -> Smtp2GoOptions:
    return Smtp2GoOptions(api_key="smtp2go_test_key")


@pytest.fixture
def mailgun_options() -> MailgunOptions:
    return MailgunOptions(api_key="key-test", domain="mg.example.com")


@pytest.fixture
def socketlabs_options() -> SocketLabsOptions:
    return SocketLabsOptions(default_server_id=12345, api_key="socketlabs_test_key")


@pytest.fixture
def mock_provider() -> MockEmailProvider:
    return MockEmailProvider()


@pytest.fixture
def message() -> Message:
    return (
        Message.compose()
        .from_address("from@example.com", "Sender")
        .to("to@example.com", "Recipient")
        .with_subject("test subject")
        .with_plain_text_content("this is a test")
        .build()
    )


@pytest.fixture
def full_message() -> Message:
    return (
        Message.compose()
        .from_address("from@example.com", "Sender")
        .reply_to("replyto@example.com")
        .to("to@example.com", "Recipient")
        .cc("cc@example.com")
        .bcc("bcc@example.com")
        .with_subject("test subject")
        .with_plain_text_content("this is a test")
        .with_html_content("<p>this is a test</p>")
        .set_charset_to("utf-8")
        .with_header("X-Campaign", "welcome")
        .build()
    )
