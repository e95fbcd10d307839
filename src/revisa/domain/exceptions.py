"""Domain exceptions raised at the service and adapter seams.

The scheduling core itself degrades to safe defaults and does not raise on
bad item data; these cover lookups, ingest and storage.
"""


class RevisaError(Exception):
    """Base class for revisa errors."""


class ItemNotFoundError(RevisaError):
    def __init__(self, item_id: str):
        super().__init__(f"Item not found: {item_id}")
        self.item_id = item_id


class InvalidRecordError(RevisaError):
    """A legacy record could not be converted into a reviewable item."""


class StoreError(RevisaError):
    """The backing item file could not be read or written."""
