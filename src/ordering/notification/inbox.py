"""A user's notification inbox: listing, read receipts and deletion."""

from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.notification.notification import Notification

INBOX_LIMIT = 50


@ordering.command(part_of="Notification")
class MarkNotificationRead:
    notification_id = Identifier(required=True)
    requester_id = Identifier(required=True)


@ordering.command(part_of="Notification")
class MarkAllNotificationsRead:
    recipient_id = Identifier(required=True)


@ordering.command(part_of="Notification")
class DeleteNotification:
    notification_id = Identifier(required=True)
    requester_id = Identifier(required=True)


def _for_recipient(recipient_id):
    repo = current_domain.repository_for(Notification)
    return repo._dao.query.filter(recipient_id=str(recipient_id)).all().items


@ordering.command_handler(part_of=Notification)
class InboxHandler:
    @handle(MarkNotificationRead)
    def mark_read(self, command):
        repo = current_domain.repository_for(Notification)
        notification = repo.get(command.notification_id)
        notification.assert_owned_by(command.requester_id, "Not authorized to update this notification")
        notification.mark_read()
        repo.add(notification)
        return str(notification.id)

    @handle(MarkAllNotificationsRead)
    def mark_all_read(self, command):
        repo = current_domain.repository_for(Notification)
        unread = [n for n in _for_recipient(command.recipient_id) if not n.read]
        for notification in unread:
            notification.mark_read()
            repo.add(notification)
        return len(unread)

    @handle(DeleteNotification)
    def delete(self, command):
        repo = current_domain.repository_for(Notification)
        notification = repo.get(command.notification_id)
        notification.assert_owned_by(command.requester_id, "Not authorized to delete this notification")
        repo._dao.delete(notification)


def inbox_for(recipient_id, unread_only=False, limit=INBOX_LIMIT):
    """Return ``(notifications, unread_count)``, newest first."""
    notifications = _for_recipient(recipient_id)
    unread_count = sum(1 for n in notifications if not n.read)
    if unread_only:
        notifications = [n for n in notifications if not n.read]
    notifications = sorted(notifications, key=lambda n: n.created_at, reverse=True)
    return notifications[:limit], unread_count
