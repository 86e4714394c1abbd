"""
Business logic services for the Discord REST client

Service layer providing typed interfaces to the API client.
"""

from .chat_service import ChatService

__all__ = [
    'ChatService',
]
