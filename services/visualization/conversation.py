"""
Conversational interface used to forward follow-up questions from chart interactions.
"""

from abc import ABC, abstractmethod
from typing import List
import logging

logger = logging.getLogger(__name__)


class ConversationInterface(ABC):
    """Receives follow-up queries triggered by chart interactions"""

    @abstractmethod
    def send_message(self, query: str):
        """Submit a query to the conversation; callers do not wait for an answer"""
        pass


class QueuedConversation(ConversationInterface):
    """Collects outbound queries until the chat surface picks them up"""

    def __init__(self):
        self.outbox: List[str] = []

    def send_message(self, query: str):
        logger.debug(f"Queued follow-up query: {query}")
        self.outbox.append(query)

    def drain(self) -> List[str]:
        """Return and clear the queued queries, oldest first"""
        queries, self.outbox = self.outbox, []
        return queries


def person_query(person_id: str) -> str:
    return f"Tell me more about the person with ID {person_id}"
