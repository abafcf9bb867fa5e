import logging

from django.db import DatabaseError, transaction

from .models import Notification

logger = logging.getLogger(__name__)


def notify_user(user, title: str, message: str, *, type: str = "system", data: dict | None = None):
    """
    Best-effort in-app notification. Runs in its own savepoint so a failed insert
    never rolls back the caller's transaction; returns None on failure.
    """
    try:
        with transaction.atomic():
            return Notification.objects.create(
                user=user, title=title, message=message, type=type, data=data or {},
            )
    except DatabaseError:
        logger.warning("notification insert failed for user=%s title=%r", getattr(user, "pk", None), title, exc_info=True)
        return None
