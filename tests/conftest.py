"""
Shared pytest fixtures for the Academy agent test suite.
All fixtures use mock mode — no OpenAI credentials required.
Factory helpers live in tests/factories.py so they can be imported
directly by test modules as well as being used here.
"""
import sys
import os

_tests_dir = os.path.dirname(__file__)
_src_dir   = os.path.join(_tests_dir, "..", "src")
for _p in (_tests_dir, _src_dir):
    if _p not in sys.path:
        sys.path.insert(0, _p)

# Force mock mode — never call a live backend during tests
os.environ["FORCE_MOCK_MODE"] = "true"
os.environ.setdefault("AZURE_OPENAI_ENDPOINT", "<placeholder>")
os.environ.setdefault("AZURE_OPENAI_API_KEY",  "<placeholder>")


import pytest

from factories import (
    coach_payload,
    make_context,
    make_session,
    make_settings,
    path_payload,
    quiz_payload,
)


# ─── pytest fixtures ──────────────────────────────────────────────────────────

@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def context_sales():
    return make_context(role="Sales", maturity=2)


@pytest.fixture
def empty_session():
    return make_session(messages=0)


@pytest.fixture
def busy_session():
    return make_session(messages=14)


@pytest.fixture
def coach_json():
    return coach_payload()


@pytest.fixture
def quiz_json():
    return quiz_payload()


@pytest.fixture
def path_json():
    return path_payload()
