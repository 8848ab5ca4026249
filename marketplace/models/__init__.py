# Makes 'models' a package and simplifies imports

from .base import BaseModel, metadata
from .contract import Contract
from .conversation import Conversation, ConversationDeletion
from .message import Message
from .mission import Mission
from .user import User

__all__ = [
    "BaseModel",
    "metadata",
    "User",
    "Conversation",
    "ConversationDeletion",
    "Message",
    "Mission",
    "Contract",
]
