"""Tests for message template loading and rendering."""

import pytest

from core.enums import NotificationType
from core.notifications.templates import (
    get_message,
    load_templates,
    render_message,
    render_notification,
)


class TestLoadTemplates:
    def test_loads_yaml_file(self):
        templates = load_templates()
        assert isinstance(templates, dict)
        assert "meeting_scheduled" in templates

    @pytest.mark.parametrize(
        "notification_type",
        [t.value for t in NotificationType if t.value.startswith("meeting_")],
    )
    def test_every_meeting_type_has_title_and_message(self, notification_type):
        entry = load_templates()[notification_type]
        assert entry["title"]
        assert entry["message"]

    def test_self_phrasing_for_actor_events(self):
        templates = load_templates()
        assert "message_self" in templates["meeting_canceled"]
        assert "message_self" in templates["meeting_rescheduled"]

    def test_channel_wrappers(self):
        templates = load_templates()
        assert "subject" in templates["email"]
        assert "body" in templates["email"]
        assert "body" in templates["sms"]


class TestRenderMessage:
    def test_renders_simple_variable(self):
        result = render_message("Hello {name}!", {"name": "Alice"})
        assert result == "Hello Alice!"

    def test_missing_variable_raises(self):
        with pytest.raises(KeyError):
            render_message("Hello {name}!", {})


class TestRenderNotification:
    def test_reminder(self):
        title, message = render_notification(
            "meeting_reminder_30min",
            {"counterpart_name": "Brian", "meeting_time": "Saturday, January 10 at 11:00 AM (UTC-5)"},
        )
        assert title == "Meeting in 30 Minutes"
        assert message == (
            "Your meeting with Brian starts in 30 minutes, "
            "at Saturday, January 10 at 11:00 AM (UTC-5)."
        )

    def test_self_field(self):
        _, message = render_notification(
            "meeting_canceled",
            {"counterpart_name": "Brian", "meeting_time": "Saturday"},
            message_field="message_self",
        )
        assert message.startswith("You canceled your meeting with Brian")

    def test_completed_includes_duration(self):
        _, message = render_notification(
            "meeting_completed", {"counterpart_name": "Alice", "duration": 40}
        )
        assert "40-minute" in message

    def test_get_message_email_subject(self):
        assert get_message("email", "subject", {"title": "Meeting Missed"}) == "TalkTime: Meeting Missed"
