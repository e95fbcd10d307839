"""
Reference canonicalization and item-to-reference linking.

Source data is tagged inconsistently (explicit refs, legacy refs, tags,
bare ids), so membership is tested along several paths.
"""

import re
import unicodedata

from revisa.domain.constants import (
    GENERATED_ID_PREFIXES,
    ITEM_REF_FIELDS,
    MIN_TAG_REFERENCE_LEN,
    RESERVED_TAGS,
    TRACK_PREFIX,
)
from revisa.domain.models import Question, ReviewableItem

_INVISIBLE_RE = re.compile("[\u200b-\u200d\ufeff]")
_COMBINING_RE = re.compile("[\u0300-\u036f]")
_PUNCT_RE = re.compile(r"""[.,;:\-_?!()\[\]{}"']""")
_SPACE_RE = re.compile(r"\s+")


def canonical_id(value: str | None) -> str:
    """Opaque ids are trimmed only; some are case-sensitive encodings."""
    if not value:
        return ""
    return value.strip()


def canonicalize(ref: str | None) -> str:
    """
    Normalize a free-text reference into a comparable key.

    Track identifiers are composite keys and are kept verbatim (trimmed).
    """
    if not ref:
        return ""
    if ref.strip().upper().startswith(TRACK_PREFIX):
        return ref.strip()

    out = unicodedata.normalize("NFKC", str(ref))
    out = _INVISIBLE_RE.sub("", out)
    return out.strip().lower()


def _first_text(*values: str | None) -> str | None:
    for v in values:
        if isinstance(v, str) and v.strip():
            return v
    return None


def resolve_reference(item: ReviewableItem) -> str:
    """
    Canonical reference an item belongs to, or "" when ungrouped.

    Order: explicit ref, legacy ref, external alias, first usable tag,
    then the item id unless it looks generated.
    """
    explicit = _first_text(*(getattr(item, name) for name in ITEM_REF_FIELDS))
    if explicit:
        return canonicalize(explicit)

    for tag in item.tags:
        if canonicalize(tag) not in RESERVED_TAGS and len(tag) > MIN_TAG_REFERENCE_LEN:
            return canonicalize(tag)

    if item.id and not item.id.startswith(GENERATED_ID_PREFIXES):
        return canonicalize(item.id)

    return ""


def is_linked(item: ReviewableItem, target_canonical: str) -> bool:
    if not target_canonical:
        return False

    ref = resolve_reference(item)
    if ref and ref == target_canonical:
        return True

    if any(canonicalize(t) == target_canonical for t in item.tags):
        return True

    if item.law_ref and canonicalize(item.law_ref) == target_canonical:
        return True
    if item.lit_ref and canonicalize(item.lit_ref) == target_canonical:
        return True

    return False


# ---------- Fingerprints (dedup keys) ----------


def normalize_text_for_fingerprint(text: str | None) -> str:
    if not text:
        return ""
    out = unicodedata.normalize("NFD", text.strip().lower())
    out = _COMBINING_RE.sub("", out)
    out = _PUNCT_RE.sub("", out)
    return _SPACE_RE.sub(" ", out)


def question_fingerprint(item: Question) -> str:
    law = normalize_text_for_fingerprint(item.law_ref)
    text = normalize_text_for_fingerprint(item.question_text)
    return f"{law}|{text}"
