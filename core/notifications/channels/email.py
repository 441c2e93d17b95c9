"""SendGrid email delivery channel."""

import asyncio
import logging
import re

from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail

from core.config import get_frontend_url, get_sendgrid_settings
from core.enums import DeliveryOutcome
from core.notifications.templates import get_message

logger = logging.getLogger(__name__)

# Regex to match markdown links: [text](url)
MARKDOWN_LINK_PATTERN = re.compile(r"\[([^\]]+)\]\(([^)]+)\)")

_client: SendGridAPIClient | None = None


def markdown_to_html(text: str) -> str:
    """
    Convert markdown-style links to HTML and wrap in basic HTML structure.

    Converts [text](url) to <a href="url">text</a> and preserves line breaks.
    """
    html_body = MARKDOWN_LINK_PATTERN.sub(r'<a href="\2">\1</a>', text)
    html_body = html_body.replace("\n", "<br>\n")

    return f"""<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
</head>
<body style="font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; line-height: 1.5; color: #333;">
{html_body}
</body>
</html>"""


def markdown_to_plain_text(text: str) -> str:
    """Convert [text](url) to text (url) for the plain text part."""
    return MARKDOWN_LINK_PATTERN.sub(r"\1 (\2)", text)


def _get_sendgrid_client() -> SendGridAPIClient | None:
    """Get or create SendGrid client singleton."""
    global _client
    api_key = get_sendgrid_settings()["api_key"]
    if _client is None and api_key:
        _client = SendGridAPIClient(api_key)
    return _client


def send_email(to_email: str, subject: str, body: str) -> bool:
    """
    Send an email via SendGrid.

    The body can contain markdown-style links [text](url) which will be
    converted to HTML links. Both plain text and HTML versions are sent.

    Returns:
        True if sent successfully, False otherwise
    """
    client = _get_sendgrid_client()
    if not client:
        logger.warning("SendGrid not configured (SENDGRID_API_KEY not set)")
        return False

    settings = get_sendgrid_settings()
    try:
        message = Mail(
            from_email=(settings["from_email"], settings["from_name"]),
            to_emails=to_email,
            subject=subject,
            plain_text_content=markdown_to_plain_text(body),
            html_content=markdown_to_html(body),
        )
        response = client.send(message)
        return response.status_code in (200, 201, 202)
    except Exception as e:
        logger.error(f"Failed to send email to {to_email}: {e}")
        return False


def build_email(notification: dict, recipient: dict) -> tuple[str, str]:
    """Render (subject, body) for a stored notification."""
    link = get_frontend_url() + (notification.get("action_url") or "/")
    context = {
        "name": recipient.get("full_name") or "there",
        "title": notification["title"],
        "message": notification["message"],
        "link": link,
    }
    return (
        get_message("email", "subject", context),
        get_message("email", "body", context),
    )


async def deliver(notification: dict, recipient: dict | None, directory=None):
    """Email channel entry point used by the dispatcher."""
    if not recipient or not recipient.get("email"):
        return DeliveryOutcome.no_address
    subject, body = build_email(notification, recipient)
    # SendGrid's client is blocking
    return await asyncio.to_thread(send_email, recipient["email"], subject, body)
