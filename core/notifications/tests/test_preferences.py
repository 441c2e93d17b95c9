"""Tests for preference resolution and channel gating."""

import pytest

from core.notifications.preferences import (
    PreferenceResolver,
    category_for,
    default_preferences,
    preferences_from_row,
    preferences_to_columns,
    should_send_email,
    should_send_push,
    should_send_sms,
)


class FakeMonotonic:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


class TestCategories:
    def test_reminder_tiers_share_a_category(self):
        for kind in ("meeting_reminder_30min", "meeting_reminder_10min", "meeting_reminder_5min"):
            assert category_for(kind) == "meeting_reminders"

    def test_meeting_changes(self):
        for kind in ("meeting_rescheduled", "meeting_canceled", "meeting_missed", "meeting_ended"):
            assert category_for(kind) == "meeting_changes"

    def test_scheduled_and_confirmation(self):
        assert category_for("meeting_scheduled") == "meeting_scheduled"
        assert category_for("meeting_scheduled_confirmation") == "meeting_scheduled"

    def test_system_and_general(self):
        assert category_for("system") == "system_alerts"
        assert category_for("general") == "system_alerts"


class TestDefaults:
    def test_email_follows_priority_when_defaulted(self):
        prefs = default_preferences()
        assert should_send_email(prefs, "general", "low") is False
        assert should_send_email(prefs, "general", "medium") is True
        assert should_send_email(prefs, "meeting_canceled", "high") is True
        assert should_send_email(prefs, "meeting_reminder_5min", "urgent") is True

    def test_sms_off_by_default(self):
        prefs = default_preferences()
        assert should_send_sms(prefs, "meeting_reminder_5min", "urgent") is False
        assert should_send_sms(prefs, "meeting_canceled", "high") is False

    def test_push_on_by_default(self):
        prefs = default_preferences()
        assert should_send_push(prefs, "meeting_reminder_30min", "high") is True
        assert should_send_push(prefs, "general", "low") is True


class TestStoredPreferences:
    def test_row_converts_to_document(self):
        prefs = preferences_from_row({"email_enabled": False, "sms_enabled": True, "push_meeting_changes": None})
        assert prefs["is_default"] is False
        assert prefs["email"]["enabled"] is False
        assert prefs["sms"]["enabled"] is True
        # NULL columns keep their default
        assert prefs["push"]["meeting_changes"] is True

    def test_explicit_choice_sends_low_priority_email(self):
        prefs = preferences_from_row({"email_enabled": True})
        assert should_send_email(prefs, "general", "low") is True

    def test_email_category_switch(self):
        prefs = preferences_from_row({"email_meeting_reminders": False})
        assert should_send_email(prefs, "meeting_reminder_30min", "high") is False
        assert should_send_email(prefs, "meeting_canceled", "high") is True

    def test_sms_reminders_only_for_urgent_tier(self):
        prefs = preferences_from_row({"sms_enabled": True, "sms_urgent_reminders": True})
        assert should_send_sms(prefs, "meeting_reminder_5min", "urgent") is True
        assert should_send_sms(prefs, "meeting_reminder_30min", "high") is False

    def test_sms_requires_category_opt_in(self):
        prefs = preferences_from_row({"sms_enabled": True, "sms_meeting_changes": True})
        assert should_send_sms(prefs, "meeting_canceled", "high") is True
        assert should_send_sms(prefs, "system", "high") is False

    def test_push_disabled_explicitly(self):
        prefs = preferences_from_row({"push_enabled": False})
        assert should_send_push(prefs, "meeting_reminder_5min", "urgent") is False

    def test_partial_document_to_columns(self):
        columns = preferences_to_columns({"sms": {"enabled": True}, "push": {"meeting_reminders": False}})
        assert columns == {"sms_enabled": True, "push_meeting_reminders": False}


class TestPreferenceResolver:
    @pytest.mark.asyncio
    async def test_missing_record_yields_defaults(self, directory):
        resolver = PreferenceResolver(directory, ttl_seconds=300)
        prefs = await resolver.get(1)
        assert prefs == default_preferences()

    @pytest.mark.asyncio
    async def test_cached_until_ttl_expires(self, directory):
        clock = FakeMonotonic()
        resolver = PreferenceResolver(directory, ttl_seconds=300, clock=clock)
        directory.preferences[1] = {"sms_enabled": True}

        await resolver.get(1)
        directory.preferences[1] = {"sms_enabled": False}
        clock.now += 299
        assert (await resolver.get(1))["sms"]["enabled"] is True
        assert directory.preference_calls == 1

        clock.now += 2
        assert (await resolver.get(1))["sms"]["enabled"] is False
        assert directory.preference_calls == 2

    @pytest.mark.asyncio
    async def test_invalidate_forces_reload(self, directory):
        resolver = PreferenceResolver(directory, ttl_seconds=300, clock=FakeMonotonic())
        await resolver.get(1)
        directory.preferences[1] = {"email_enabled": False}

        resolver.invalidate(1)

        assert (await resolver.get(1))["email"]["enabled"] is False

    @pytest.mark.asyncio
    async def test_invalidate_all(self, directory):
        resolver = PreferenceResolver(directory, ttl_seconds=300, clock=FakeMonotonic())
        await resolver.get(1)
        await resolver.get(2)
        resolver.invalidate()
        await resolver.get(1)
        await resolver.get(2)
        assert directory.preference_calls == 4

    @pytest.mark.asyncio
    async def test_lookup_failure_returns_uncached_defaults(self, directory):
        resolver = PreferenceResolver(directory, ttl_seconds=300, clock=FakeMonotonic())
        directory.fail_preferences = True

        assert await resolver.get(1) == default_preferences()

        directory.fail_preferences = False
        directory.preferences[1] = {"push_enabled": False}
        assert (await resolver.get(1))["push"]["enabled"] is False

    @pytest.mark.asyncio
    async def test_returned_document_is_a_copy(self, directory):
        resolver = PreferenceResolver(directory, ttl_seconds=300, clock=FakeMonotonic())
        prefs = await resolver.get(1)
        prefs["email"]["enabled"] = False
        assert (await resolver.get(1))["email"]["enabled"] is True
