"""Shared fixtures for core unit tests"""

import pytest

from yamlsplit.core.models import LexicalContext
from yamlsplit.core.tracker import advance


@pytest.fixture(name="classify")
def classify_fixture():
    """Run the tracker over a list of lines; return (kinds, final context)."""
    def _classify(lines: list[str]):
        ctx = LexicalContext()
        kinds = []
        for line in lines:
            ctx, kind = advance(ctx, line)
            kinds.append(kind)
        return kinds, ctx
    return _classify
