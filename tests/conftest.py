from __future__ import annotations

import pytest


@pytest.fixture
def tax_texts():
    return [
        "The new law included a capital gains tax, and an inheritance tax.",
        "New York City has raised a taxes: an income tax and a sales tax.",
    ]


@pytest.fixture
def tax_phrases():
    return ["tax", "income tax", "capital gains tax", "inheritance tax"]


@pytest.fixture
def simon_tokens():
    return [
        [
            "Simon", "sez", "the", "multi", "word", "expression", "plural", "is",
            "multi", "word", "expressions", ",", "Simon", "sez", ".",
        ]
    ]
