"""Conversation shape checks run before anything is sent to the provider."""
import logging
from collections.abc import Sequence

from cardsavvy.schemas.chat import ChatTurn
from cardsavvy.services.errors import InvalidStructure

logger = logging.getLogger(__name__)


def validate_conversation(turns: Sequence[ChatTurn]) -> None:
    """Raise InvalidStructure unless user/assistant turns alternate and end on user.

    System turns are ignored. An empty conversation (or one with only system
    turns) is accepted: the caller injects the system prompt itself.
    """
    dialogue = [t for t in turns if t.role != "system"]
    if not dialogue:
        return

    for previous, current in zip(dialogue, dialogue[1:]):
        if previous.role == current.role:
            logger.warning(f"Rejected conversation: consecutive '{current.role}' turns")
            raise InvalidStructure("Messages must alternate between user and assistant.")

    if dialogue[-1].role != "user":
        logger.warning(f"Rejected conversation: ends with '{dialogue[-1].role}'")
        raise InvalidStructure("Last message must be from user.")


def is_valid_conversation(turns: Sequence[ChatTurn]) -> bool:
    try:
        validate_conversation(turns)
    except InvalidStructure:
        return False
    return True
