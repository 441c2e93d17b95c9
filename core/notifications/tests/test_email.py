"""Tests for email channel."""

from unittest.mock import patch, MagicMock

import pytest

from core.enums import DeliveryOutcome
from core.notifications.channels.email import (
    build_email,
    deliver,
    send_email,
    markdown_to_html,
    markdown_to_plain_text,
)


NOTIFICATION = {
    "notification_id": 7,
    "recipient_id": 2,
    "recipient_role": "student",
    "title": "Meeting Canceled",
    "message": "Alice canceled your meeting.",
    "type": "meeting_canceled",
    "priority": "high",
    "action_url": "/call/call.html?roomId=room-42",
}


class TestSendEmail:
    @patch("core.notifications.channels.email._get_sendgrid_client")
    def test_sends_email_via_sendgrid(self, mock_get_client):
        mock_client = MagicMock()
        mock_get_client.return_value = mock_client
        mock_response = MagicMock()
        mock_response.status_code = 202
        mock_client.send.return_value = mock_response

        result = send_email(
            to_email="alice@example.com",
            subject="Test Subject",
            body="Test body",
        )

        assert result is True
        mock_client.send.assert_called_once()

    @patch("core.notifications.channels.email._get_sendgrid_client")
    def test_returns_false_on_failure(self, mock_get_client):
        mock_client = MagicMock()
        mock_get_client.return_value = mock_client
        mock_client.send.side_effect = Exception("API error")

        result = send_email(
            to_email="alice@example.com",
            subject="Test",
            body="Test",
        )

        assert result is False

    @patch("core.notifications.channels.email._get_sendgrid_client")
    def test_returns_false_on_unexpected_status(self, mock_get_client):
        mock_client = MagicMock()
        mock_get_client.return_value = mock_client
        mock_client.send.return_value = MagicMock(status_code=400)

        assert send_email("alice@example.com", "Test", "Test") is False

    def test_returns_false_when_not_configured(self):
        with patch.dict("os.environ", {}, clear=True):
            with patch("core.notifications.channels.email._client", None):
                result = send_email(
                    to_email="alice@example.com",
                    subject="Test",
                    body="Test",
                )
                assert result is False


class TestBuildEmail:
    def test_wraps_notification_in_email_template(self):
        with patch.dict("os.environ", {"FRONTEND_URL": "https://talktime.example/"}):
            subject, body = build_email(NOTIFICATION, {"full_name": "Brian Student"})

        assert subject == "TalkTime: Meeting Canceled"
        assert body.startswith("Hi Brian Student,")
        assert "Alice canceled your meeting." in body
        assert "(https://talktime.example/call/call.html?roomId=room-42)" in body

    def test_missing_name_and_action_url(self):
        notification = {**NOTIFICATION, "action_url": None}
        with patch.dict("os.environ", {"FRONTEND_URL": "https://talktime.example"}):
            _, body = build_email(notification, {})

        assert body.startswith("Hi there,")
        assert "(https://talktime.example/)" in body


class TestDeliver:
    @pytest.mark.asyncio
    async def test_no_email_address(self):
        assert await deliver(NOTIFICATION, {"full_name": "Brian"}) == DeliveryOutcome.no_address
        assert await deliver(NOTIFICATION, None) == DeliveryOutcome.no_address

    @pytest.mark.asyncio
    @patch("core.notifications.channels.email.send_email", return_value=True)
    async def test_sends_to_recipient_address(self, mock_send):
        result = await deliver(NOTIFICATION, {"full_name": "Brian", "email": "brian@example.com"})

        assert result is True
        to_email, subject, body = mock_send.call_args.args
        assert to_email == "brian@example.com"
        assert subject == "TalkTime: Meeting Canceled"


class TestMarkdownConversion:
    def test_markdown_to_html_converts_links(self):
        text = "Click [here](https://example.com) to continue."
        html = markdown_to_html(text)

        assert '<a href="https://example.com">here</a>' in html
        assert "[here]" not in html

    def test_markdown_to_html_converts_multiple_links(self):
        text = "[Link 1](https://one.com) and [Link 2](https://two.com)"
        html = markdown_to_html(text)

        assert '<a href="https://one.com">Link 1</a>' in html
        assert '<a href="https://two.com">Link 2</a>' in html

    def test_markdown_to_html_preserves_newlines(self):
        html = markdown_to_html("Line 1\nLine 2")

        assert "<br>" in html

    def test_markdown_to_html_wraps_in_html_structure(self):
        html = markdown_to_html("Hello")

        assert "<!DOCTYPE html>" in html
        assert "<body" in html

    def test_markdown_to_plain_text_converts_links(self):
        text = "Click [here](https://example.com) to continue."
        plain = markdown_to_plain_text(text)

        assert plain == "Click here (https://example.com) to continue."

    def test_markdown_to_plain_text_preserves_non_links(self):
        text = "No links here, just text."
        assert markdown_to_plain_text(text) == text
