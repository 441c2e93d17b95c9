"""In-app channel.

The notification row is the in-app message, and the dispatcher publishes the
new-notification event before fan-out, so this channel only confirms the row
exists.
"""


async def deliver(notification: dict, recipient: dict | None, directory=None) -> bool:
    return notification.get("notification_id") is not None
