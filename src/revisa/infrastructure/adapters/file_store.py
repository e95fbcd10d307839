"""
File Item Store: Infrastructure adapter for a JSON or YAML item file.

Implements ItemStore over a single document of the form
`{questions: [...], flashcards: [...]}`. The file is re-read on every call
so callers always grade against current state.
"""

import json
import logging
from pathlib import Path
from typing import Any

import yaml

from revisa.application.ingest import item_to_record, load_collections
from revisa.domain.exceptions import StoreError
from revisa.domain.models import Flashcard, ReviewableItem
from revisa.domain.ports import ItemStore

logger = logging.getLogger(__name__)

YAML_SUFFIXES = {".yaml", ".yml"}


class FileItemStore(ItemStore):
    """
    Stores both collections in one file. The format follows the suffix:
    `.yaml`/`.yml` uses PyYAML, anything else JSON.
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    @property
    def is_yaml(self) -> bool:
        return self.path.suffix.lower() in YAML_SUFFIXES

    def _read(self) -> dict[str, Any]:
        if not self.path.exists():
            logger.debug(f"{self.path} does not exist, using empty collections")
            return {"questions": [], "flashcards": []}
        try:
            text = self.path.read_text(encoding="utf-8")
            data = yaml.safe_load(text) if self.is_yaml else json.loads(text)
        except (OSError, yaml.YAMLError, json.JSONDecodeError) as e:
            raise StoreError(f"Could not read {self.path}: {e}") from e

        if data is None:
            return {"questions": [], "flashcards": []}
        if not isinstance(data, dict):
            raise StoreError(f"{self.path} must contain a mapping with questions/flashcards")
        return data

    def _write(self, data: dict[str, Any]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            if self.is_yaml:
                text = yaml.safe_dump(data, sort_keys=False, allow_unicode=True)
            else:
                text = json.dumps(data, indent=2, ensure_ascii=False)
            self.path.write_text(text, encoding="utf-8")
        except OSError as e:
            raise StoreError(f"Could not write {self.path}: {e}") from e

    def load(self) -> tuple[list[ReviewableItem], list[ReviewableItem]]:
        return load_collections(self._read())

    async def get_item(self, item_id: str) -> ReviewableItem | None:
        questions, flashcards = self.load()
        for item in (*questions, *flashcards):
            if item.id == item_id:
                return item
        return None

    async def list_questions(self) -> list[ReviewableItem]:
        return self.load()[0]

    async def list_flashcards(self) -> list[ReviewableItem]:
        return self.load()[1]

    async def save_item(self, item: ReviewableItem) -> None:
        data = self._read()
        key = "flashcards" if isinstance(item, Flashcard) else "questions"
        records = list(data.get(key) or [])
        record = item_to_record(item)

        for idx, existing in enumerate(records):
            if isinstance(existing, dict) and existing.get("id") == item.id:
                records[idx] = record
                break
        else:
            records.append(record)

        data[key] = records
        self._write(data)
        logger.info(f"Saved {item.kind.value} {item.id} to {self.path}")
