"""Engine facade and the message surface hosts use to reach it."""

from .engine import BlockIndexEngine
from .messages import Message, MessageResponse, MessageType, dispatch

__all__ = [
    "BlockIndexEngine",
    "Message",
    "MessageResponse",
    "MessageType",
    "dispatch",
]
