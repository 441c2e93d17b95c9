"""
Notification copy.

Every notification type has a title and a message in messages.yaml. Types
that an actor triggers (cancel, reschedule) also carry message_self, the
wording shown to the participant who made the change.
"""

from pathlib import Path

import yaml


_catalogue: dict | None = None


def load_templates() -> dict:
    """Read messages.yaml once and keep it for the life of the process."""
    global _catalogue
    if _catalogue is None:
        with open(Path(__file__).parent / "messages.yaml") as f:
            _catalogue = yaml.safe_load(f)
    return _catalogue


def render_message(template: str, context: dict) -> str:
    """
    Fill a str.format template.

    Raises:
        KeyError: If the template names a placeholder the context lacks,
            e.g. {counterpart_name} on an event with no participant names
    """
    return template.format(**context)


def get_message(notification_type: str, field: str, context: dict) -> str:
    """
    Render one field of a notification type's copy.

    Args:
        notification_type: e.g. "meeting_canceled", "meeting_reminder_5min"
        field: "title", "message" or "message_self"
        context: Placeholder values; times must already be in the
            recipient's timezone
    """
    return render_message(load_templates()[notification_type][field], context)


def render_notification(
    notification_type: str, context: dict, message_field: str = "message"
) -> tuple[str, str]:
    """Render (title, message) for a notification type."""
    return (
        get_message(notification_type, "title", context),
        get_message(notification_type, message_field, context),
    )
