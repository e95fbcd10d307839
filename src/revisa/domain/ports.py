"""
Ports (interfaces) for item storage.

These define the contract that infrastructure adapters must implement.
Application services depend on these abstractions, not concrete implementations.
"""

from abc import ABC, abstractmethod

from .models import ReviewableItem


class ItemStore(ABC):
    """
    Port for the collections that own reviewable items.

    Implementations:
        - FileItemStore: JSON or YAML file holding both collections.
    """

    @abstractmethod
    async def get_item(self, item_id: str) -> ReviewableItem | None:
        """
        Fetch the current state of a single item from either collection.

        Returns:
            The item, or None if no collection holds that id.
        """
        pass

    @abstractmethod
    async def list_questions(self) -> list[ReviewableItem]:
        """Return the question collection (ordinary questions and gaps)."""
        pass

    @abstractmethod
    async def list_flashcards(self) -> list[ReviewableItem]:
        """Return the flashcard collection (flashcards and pairs)."""
        pass

    @abstractmethod
    async def save_item(self, item: ReviewableItem) -> None:
        """Replace the stored item that has the same id."""
        pass
