"""Delivery channels.

Each channel exposes ``deliver(notification, recipient, directory)`` returning
True on success, False on failure, or DeliveryOutcome.no_address when the
recipient has nowhere to receive it.
"""

from core.enums import Channel

from . import email, in_app, push, sms

CHANNEL_HANDLERS = {
    Channel.in_app.value: in_app.deliver,
    Channel.push.value: push.deliver,
    Channel.email.value: email.deliver,
    Channel.sms.value: sms.deliver,
}

__all__ = ["CHANNEL_HANDLERS"]
