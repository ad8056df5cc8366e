from datetime import date

import pytest

from skincare_engine.signals.base import AnswerSignal, CatalogItem, PhotoSignal
from skincare_engine.storage.store import MemoryStore
from skincare_engine.taxonomy.need_catalog import default_catalog

# Wednesday; ISO week 2024-05-13 .. 2024-05-19
FIXED_TODAY = date(2024, 5, 15)
USER_ID = "user-1"
SESSION_ID = "sess-1"


@pytest.fixture
def catalog():
    return default_catalog()


@pytest.fixture
def sensitive_no_sunscreen():
    """Baseline photo only, sensitive skin, no daily sunscreen."""
    photos = [PhotoSignal(shot_type="base")]
    answers = [
        AnswerSignal(question_key="sensitive_skin", answer="O"),
        AnswerSignal(question_key="daily_sunscreen", answer="X"),
    ]
    return photos, answers


@pytest.fixture
def products():
    return [
        CatalogItem(id="p-lift", name="Lift Serum", category="serum", effect_tags=("lifting",)),
        CatalogItem(id="p-calm", name="Cica Ampoule", category="ampoule", effect_tags=("calming",), key_ingredients=("cica",)),
        CatalogItem(id="p-tone", name="Glow Toner", category="toner", effect_tags=("glow",)),
        CatalogItem(id="p-oil", name="Oil Gel", category="gel", effect_tags=("sebum",)),
    ]


@pytest.fixture
def store(products):
    s = MemoryStore()
    s.add_session(USER_ID, session_id=SESSION_ID, created_at="2024-05-14T08:00:00+00:00")
    s.add_photo(SESSION_ID, "base")
    s.add_answer(SESSION_ID, "sensitive_skin", "O")
    s.add_answer(SESSION_ID, "daily_sunscreen", "X")
    for item in products:
        s.add_catalog_item(item)
    return s


@pytest.fixture
def today():
    return FIXED_TODAY
