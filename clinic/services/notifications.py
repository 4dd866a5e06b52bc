from __future__ import annotations

import logging

from ..models import Notification, User

logger = logging.getLogger(__name__)


def notify_user(user: User, title: str, message: str = '', type: str = 'info') -> Notification:
    return Notification.objects.create(user=user, title=title, message=message, type=type)


def notify_role(role: str, title: str, message: str = '', type: str = 'info') -> int:
    """Drop a notification in the inbox of every active user holding ``role``."""
    users = User.objects.filter(role=role, is_active=True)
    created = Notification.objects.bulk_create(
        [Notification(user=u, title=title, message=message, type=type) for u in users]
    )
    logger.debug('Notified %d %s user(s): %s', len(created), role, title)
    return len(created)
