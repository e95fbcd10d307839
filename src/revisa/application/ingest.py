"""
Conversion between loosely typed external records and item variants.

Records written by older tooling carry no `kind`. For those, the variant is
sniffed once at ingest from field presence and tags; everything downstream
relies on the discriminant.
"""

import logging
from typing import Any

from revisa.domain.constants import PAIR_TAG, ItemKind
from revisa.domain.exceptions import InvalidRecordError
from revisa.domain.models import (
    ITEM_CLASSES,
    AttemptRecord,
    Flashcard,
    Question,
    ReviewableItem,
)

logger = logging.getLogger(__name__)

# external camelCase key -> field name
_COMMON_FIELDS = {
    "stability": "stability",
    "difficulty": "difficulty",
    "masteryScore": "mastery_score",
    "totalAttempts": "total_attempts",
    "lastWasCorrect": "last_was_correct",
    "lastReviewedAt": "last_reviewed_at",
    "nextReviewDate": "next_review_date",
    "isCritical": "is_critical",
    "hotTopic": "hot_topic",
    "subject": "subject",
    "litRef": "lit_ref",
    "lawRef": "law_ref",
    "LIT_REF": "ref_alias",
    "tags": "tags",
}
_QUESTION_FIELDS = {
    "questionText": "question_text",
    "options": "options",
    "correctAnswer": "correct_answer",
    "questionRef": "question_ref",
}
_FLASHCARD_FIELDS = {
    "front": "front",
    "back": "back",
}
_ATTEMPT_FIELDS = {
    "date": "date",
    "wasCorrect": "was_correct",
    "masteryAfter": "mastery_after",
    "stabilityAfter": "stability_after",
    "timeSec": "time_sec",
    "selfEvalLevel": "self_eval_level",
    "timingClass": "timing_class",
    "targetSec": "target_sec",
    "trapCode": "trap_code",
}


def _pick(record: dict[str, Any], mapping: dict[str, str]) -> dict[str, Any]:
    """Read each field under its camelCase or snake_case key."""
    out: dict[str, Any] = {}
    for ext, name in mapping.items():
        if ext in record:
            out[name] = record[ext]
        elif name in record:
            out[name] = record[name]
    return out


def classify_record(record: dict[str, Any], source: str | None = None) -> ItemKind:
    """
    Decide the variant of a record.

    An explicit `kind` wins. Otherwise: gap flag, then question text (or
    coming from the question collection), then the pair tag, else flashcard.
    """
    explicit = record.get("kind")
    if explicit:
        try:
            return ItemKind(str(explicit).lower())
        except ValueError:
            raise InvalidRecordError(f"Unknown item kind: {explicit!r}") from None

    if record.get("isGapType") or record.get("is_gap_type"):
        return ItemKind.GAP
    if "questionText" in record or "question_text" in record or source == "questions":
        return ItemKind.QUESTION
    if PAIR_TAG in _tag_list(record.get("tags")):
        return ItemKind.PAIR
    return ItemKind.FLASHCARD


def _tag_list(value: Any) -> list[str]:
    if not value:
        return []
    if isinstance(value, str):
        return [value]
    return [str(t) for t in value]


def attempt_from_record(record: dict[str, Any]) -> AttemptRecord:
    fields = _pick(record, _ATTEMPT_FIELDS)
    return AttemptRecord(
        date=str(fields.get("date", "")),
        was_correct=bool(fields.get("was_correct", False)),
        mastery_after=float(fields.get("mastery_after") or 0.0),
        stability_after=float(fields.get("stability_after") or 0.0),
        time_sec=int(fields.get("time_sec") or 0),
        self_eval_level=int(fields.get("self_eval_level") or 0),
        timing_class=str(fields.get("timing_class") or "OK"),
        target_sec=int(fields.get("target_sec") or 30),
        trap_code=fields.get("trap_code"),
    )


def item_from_record(record: dict[str, Any], source: str | None = None) -> ReviewableItem:
    """
    Build a typed item from an external record.

    Args:
        record: camelCase or snake_case mapping.
        source: "questions" or "flashcards" when the owning collection is known.

    Raises:
        InvalidRecordError: If the record has no id, an unknown kind or a
            field that cannot be converted.
    """
    if not isinstance(record, dict):
        raise InvalidRecordError(f"Expected a mapping, got {type(record).__name__}")

    item_id = record.get("id")
    if not isinstance(item_id, str) or not item_id.strip():
        raise InvalidRecordError("Record has no id")

    cls = ITEM_CLASSES[classify_record(record, source)]
    try:
        fields = _coerce_fields(record, cls)
    except (TypeError, ValueError) as e:
        raise InvalidRecordError(f"Bad field in record {item_id!r}: {e}") from e
    return cls(id=item_id, **fields)


def _coerce_fields(record: dict[str, Any], cls: type[ReviewableItem]) -> dict[str, Any]:
    fields = _pick(record, _COMMON_FIELDS)
    for name in ("stability", "difficulty"):
        if fields.get(name) is not None:
            fields[name] = float(fields[name])
    fields["tags"] = _tag_list(fields.get("tags"))
    fields["total_attempts"] = int(fields.get("total_attempts") or 0)
    fields["mastery_score"] = float(fields.get("mastery_score") or 0.0)
    fields["last_was_correct"] = bool(fields.get("last_was_correct", False))

    history = record.get("attemptHistory", record.get("attempt_history")) or []
    fields["attempt_history"] = [attempt_from_record(a) for a in history if isinstance(a, dict)]

    if issubclass(cls, Question):
        fields.update(_pick(record, _QUESTION_FIELDS))
        fields["question_text"] = str(fields.get("question_text") or "")
        fields["options"] = dict(fields.get("options") or {})
    else:
        fields.update(_pick(record, _FLASHCARD_FIELDS))
        fields["front"] = str(fields.get("front") or "")
        fields["back"] = str(fields.get("back") or "")
    return fields


def attempt_to_record(attempt: AttemptRecord) -> dict[str, Any]:
    out = {ext: getattr(attempt, name) for ext, name in _ATTEMPT_FIELDS.items()}
    if out["trapCode"] is None:
        del out["trapCode"]
    return out


def item_to_record(item: ReviewableItem) -> dict[str, Any]:
    """camelCase record including the discriminant."""
    out: dict[str, Any] = {"id": item.id, "kind": item.kind.value}
    for ext, name in _COMMON_FIELDS.items():
        value = getattr(item, name)
        if value is not None:
            out[ext] = value
    out["tags"] = list(item.tags)

    if isinstance(item, Question):
        for ext, name in _QUESTION_FIELDS.items():
            value = getattr(item, name)
            if value is not None:
                out[ext] = value
        out["isGapType"] = item.is_gap_type
    elif isinstance(item, Flashcard):
        for ext, name in _FLASHCARD_FIELDS.items():
            out[ext] = getattr(item, name)

    out["attemptHistory"] = [attempt_to_record(a) for a in item.attempt_history]
    return out


def load_collection(records: list[Any] | None, source: str) -> list[ReviewableItem]:
    items: list[ReviewableItem] = []
    for rec in records or []:
        try:
            items.append(item_from_record(rec, source))
        except InvalidRecordError as e:
            logger.warning(f"Skipping {source} record: {e}")
    return items


def load_collections(
    data: dict[str, Any],
) -> tuple[list[ReviewableItem], list[ReviewableItem]]:
    """Split a `{questions: [...], flashcards: [...]}` payload into typed collections."""
    return (
        load_collection(data.get("questions"), "questions"),
        load_collection(data.get("flashcards"), "flashcards"),
    )
