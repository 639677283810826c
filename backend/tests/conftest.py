from collections.abc import Generator

import pytest

from app.core.capabilities import CapabilityRule
from app.core.metrics import reset_metrics


@pytest.fixture(autouse=True)
def clean_metrics() -> Generator[None, None, None]:
    reset_metrics()
    yield
    reset_metrics()


@pytest.fixture()
def recipe_capabilities() -> dict[str, CapabilityRule]:
    return {
        "recipe.header.meta": CapabilityRule(visible=True, editable=True),
        "recipe.basic.name": CapabilityRule(visible=False, editable=False),
        "recipe.ingredients": CapabilityRule(visible=True, editable=False),
        "recipe.process": CapabilityRule(visible=False, editable=False),
        "recipe.process.quality": CapabilityRule(visible=True, editable=True),
    }
