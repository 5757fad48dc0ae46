"""Pytest configuration and shared fixtures."""

from pathlib import Path

import pytest

from storyprobe.models.story import Story
from tests.fixtures.stories import make_branching_story, make_hub_story, make_linear_story

STORYPROBE_ENV_VARS = (
    "STORYPROBE_MAX_SIMULATIONS",
    "STORYPROBE_MAX_DEPTH",
    "STORYPROBE_STRATEGY",
    "STORYPROBE_SEED",
    "STORYPROBE_CONFIG",
)


@pytest.fixture(autouse=True)
def clean_storyprobe_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep a developer's STORYPROBE_* settings out of test runs."""
    for name in STORYPROBE_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def linear_story() -> Story:
    return make_linear_story()


@pytest.fixture
def branching_story() -> Story:
    return make_branching_story()


@pytest.fixture
def hub_story() -> Story:
    return make_hub_story()
