from app.models.contact import Contact
from app.models.conversation import Conversation, Message
from app.models.deal import Deal
from app.models.property import Property

__all__ = [
    "Property",
    "Contact",
    "Conversation",
    "Message",
    "Deal",
]
