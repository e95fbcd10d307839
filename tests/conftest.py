from datetime import datetime, timedelta, timezone

import pytest

from revisa.application.config import SrsSettings
from revisa.application.utils.dates import to_iso
from revisa.domain.models import Flashcard, Gap, PairFlashcard, Question

NOW = datetime(2024, 3, 10, 15, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Keep user config files and REVISA_* variables out of every test."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setattr(
        "revisa.application.config.CONFIG_FILES",
        [home / ".config/revisa/config.toml", home / ".revisa.toml"],
    )
    for key in ("REVISA_DATA_FILE", "REVISA_DISPLAY_TIMEZONE"):
        monkeypatch.delenv(key, raising=False)
    return home


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def settings():
    return SrsSettings(display_timezone="UTC")


def iso_days_ago(days: float, now: datetime = NOW) -> str:
    return to_iso(now - timedelta(days=days))


def iso_in(days: float, now: datetime = NOW) -> str:
    return to_iso(now + timedelta(days=days))


def make_question(item_id: str = "q_1", **kwargs) -> Question:
    kwargs.setdefault("question_text", "Qual o prazo?")
    return Question(id=item_id, **kwargs)


def make_gap(item_id: str = "q_gap", **kwargs) -> Gap:
    kwargs.setdefault("question_text", "O prazo é de ___ dias.")
    return Gap(id=item_id, **kwargs)


def make_flashcard(item_id: str = "fc_1", **kwargs) -> Flashcard:
    kwargs.setdefault("front", "Frente")
    kwargs.setdefault("back", "Verso")
    return Flashcard(id=item_id, **kwargs)


def make_pair(item_id: str = "fc_pair", **kwargs) -> PairFlashcard:
    kwargs.setdefault("front", "Termo")
    kwargs.setdefault("back", "Definição")
    kwargs.setdefault("tags", ["pair-match"])
    return PairFlashcard(id=item_id, **kwargs)


def reviewed(days_ago: float, stability: float, mastery: float, **kwargs) -> dict:
    """Common SRS fields for an item reviewed `days_ago` days before NOW."""
    fields = {
        "total_attempts": 1,
        "stability": stability,
        "difficulty": 0.5,
        "mastery_score": mastery,
        "last_was_correct": True,
        "last_reviewed_at": iso_days_ago(days_ago),
        "next_review_date": iso_in(stability - days_ago),
    }
    fields.update(kwargs)
    return fields
