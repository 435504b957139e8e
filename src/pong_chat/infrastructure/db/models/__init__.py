"""Import all models so ``Base.metadata.create_all`` sees every table."""
from pong_chat.infrastructure.db.models.message import MessageModel
from pong_chat.infrastructure.db.models.notification import (
    NotificationModel,
    NotificationReceiverModel,
)

__all__ = [
    "MessageModel",
    "NotificationModel",
    "NotificationReceiverModel",
]
