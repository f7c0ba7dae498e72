"""Channel adapters that normalize raw records into ticket message inputs."""

from app.adapters.base import BaseChannelAdapter
from app.adapters.chat_widget import ChatWidgetAdapter
from app.adapters.email_thread import EmailThreadAdapter
from app.adapters.manual import ManualEntryAdapter

__all__ = [
    "BaseChannelAdapter",
    "ChatWidgetAdapter",
    "EmailThreadAdapter",
    "ManualEntryAdapter",
]
