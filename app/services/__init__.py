"""
Service layer exports.
Provides business logic for the application.
"""
from app.services.membership_service import ChatMembershipResolver
from app.services.message_service import MessageService
from app.services.read_tracking_service import ReadTrackingService
from app.services.delivery_service import DeliveryService
from app.services.chat_service import ChatService

__all__ = [
    "ChatMembershipResolver",
    "MessageService",
    "ReadTrackingService",
    "DeliveryService",
    "ChatService",
]
