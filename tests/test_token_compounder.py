from __future__ import annotations

import pytest

from phrasecompounder.errors import ExpansionLimitError, PatternError
from phrasecompounder.phrase_spec import normalize_phrases, rank_phrases
from phrasecompounder.token_compounder import (
    SequenceIndex,
    Vocabulary,
    compound_tokens,
    merge_fixed_sequences,
    regex_to_fixed,
)


def _ranked(phrases, **kwargs):
    return rank_phrases(normalize_phrases(phrases, **kwargs))


# ---------------------------------------------------------------------
# Vocabulary
# ---------------------------------------------------------------------


def test_vocabulary_first_occurrence_order():
    vocab = Vocabulary.from_documents([["b", "a", "b"], ["c", "a"]])
    assert vocab.types == ["b", "a", "c"]
    assert len(vocab) == 3
    assert "c" in vocab
    assert "d" not in vocab


def test_vocabulary_match_is_whole_token():
    vocab = Vocabulary(["tax", "taxes", "syntax", "Tax"])
    assert vocab.match("tax") == ["tax"]
    assert vocab.match("tax.*") == ["tax", "taxes"]
    assert vocab.match("tax", case_insensitive=True) == ["tax", "Tax"]


def test_empty_vocabulary_matches_nothing():
    assert Vocabulary([]).match(".*") == []


# ---------------------------------------------------------------------
# regex_to_fixed
# ---------------------------------------------------------------------


def test_single_literal_token_round_trip():
    docs = [["a", "tax", "taxes"]]
    assert regex_to_fixed(docs, [["tax"]]) == [("tax",)]
    assert regex_to_fixed(docs, ["tax"]) == [("tax",)]
    assert regex_to_fixed(docs, [["vat"]]) == []


def test_wildcard_expands_against_vocabulary():
    docs = [["multi", "word", "expression", "multi", "word", "expressions"]]
    assert regex_to_fixed(docs, [["multi", "word", "expression.*"]]) == [
        ("multi", "word", "expression"),
        ("multi", "word", "expressions"),
    ]


def test_cartesian_product_of_positions():
    docs = [["a1", "a2", "b1", "b2"]]
    assert regex_to_fixed(docs, [["a.", "b."]]) == [
        ("a1", "b1"),
        ("a1", "b2"),
        ("a2", "b1"),
        ("a2", "b2"),
    ]


def test_position_without_match_discards_phrase():
    docs = [["new", "york"]]
    assert regex_to_fixed(docs, [["new", "jersey"], ["new", "york"]]) == [("new", "york")]


def test_duplicates_across_patterns_are_dropped():
    docs = [["new", "york"]]
    assert regex_to_fixed(docs, [["new", "york"], ["n.*", "y.*"]]) == [("new", "york")]


def test_case_insensitive_resolution():
    docs = [["New", "york", "new", "York"]]
    assert regex_to_fixed(docs, [["new", "york"]], case_insensitive=True) == [
        ("New", "york"),
        ("New", "York"),
        ("new", "york"),
        ("new", "York"),
    ]


def test_precomputed_types():
    assert regex_to_fixed([], [["x", "y"]], types=["x", "y"]) == [("x", "y")]
    vocab = Vocabulary(["x", "y"])
    assert regex_to_fixed([["ignored"]], [["x", "y"]], types=vocab) == [("x", "y")]


def test_expansion_limit():
    docs = [["a1", "a2", "a3", "b1", "b2"]]
    with pytest.raises(ExpansionLimitError) as excinfo:
        regex_to_fixed(docs, [["a.", "b."]], max_sequences=5)
    assert isinstance(excinfo.value, PatternError)
    assert regex_to_fixed(docs, [["a.", "b."]], max_sequences=6)


# ---------------------------------------------------------------------
# Merge
# ---------------------------------------------------------------------


def test_merge_prefers_longest_sequence():
    doc = ["a", "capital", "gains", "tax"]
    out = merge_fixed_sequences(doc, [("gains", "tax"), ("capital", "gains", "tax")])
    assert out == ["a", "capital_gains_tax"]


def test_merge_does_not_touch_input():
    doc = ["new", "york", "city"]
    out = merge_fixed_sequences(doc, [("new", "york")], concatenator="+")
    assert out == ["new+york", "city"]
    assert doc == ["new", "york", "city"]


def test_merge_handles_run_at_document_end():
    assert merge_fixed_sequences(["x", "new"], [("new", "york")]) == ["x", "new"]
    assert merge_fixed_sequences(["x", "new", "york"], [("new", "york")]) == ["x", "new_york"]


def test_merge_skips_single_token_sequences():
    index = SequenceIndex([("tax",)])
    assert len(index) == 0
    assert merge_fixed_sequences(["tax"], index) == ["tax"]


def test_merge_consumes_non_overlapping_runs():
    out = merge_fixed_sequences(["a", "a", "a"], [("a", "a")])
    assert out == ["a_a", "a"]


# ---------------------------------------------------------------------
# compound_tokens
# ---------------------------------------------------------------------


def test_compound_tokens_with_globs(simon_tokens):
    out = compound_tokens(simon_tokens, _ranked(["multi word expression*", "Simon sez"]))
    assert out == [
        [
            "Simon_sez", "the", "multi_word_expression", "plural", "is",
            "multi_word_expressions", ",", "Simon_sez", ".",
        ]
    ]


def test_compound_tokens_never_lengthens(simon_tokens):
    out = compound_tokens(simon_tokens, _ranked(["* *"]), max_sequences=None)
    assert all(len(o) <= len(d) for o, d in zip(out, simon_tokens))


def test_compound_tokens_case_insensitive():
    out = compound_tokens([["new", "york", "city"]], _ranked(["New York"]))
    assert out == [["new_york", "city"]]


def test_compound_tokens_no_vocabulary_match_is_noop():
    docs = [["a", "b"], ["c"]]
    messages = []
    counts = {}
    out = compound_tokens(docs, _ranked(["x y"]), counts=counts, log_fn=messages.append)
    assert out == docs
    assert counts == {}
    assert any("No vocabulary match" in m for m in messages)


def test_compound_tokens_counts_by_phrase(simon_tokens):
    counts = {}
    compound_tokens(simon_tokens, _ranked(["multi word expression*", "Simon sez"]), counts=counts)
    assert counts == {"multi word expression*": 2, "Simon sez": 2}


def test_compound_tokens_second_pass_is_stable(simon_tokens):
    specs = _ranked(["multi word expression", "Simon sez"])
    once = compound_tokens(simon_tokens, specs)
    assert compound_tokens(once, specs) == once


def test_invalid_position_pattern_raises_pattern_error():
    with pytest.raises(PatternError) as excinfo:
        regex_to_fixed([["a", "b"]], [["(", "b"]])
    assert excinfo.value.phrase == "( b"


def test_large_expansion_with_shared_first_token():
    words = [f"w{i}" for i in range(50_000)]
    index = SequenceIndex(("capital", w) for w in words)
    assert len(index) == len(words)
    assert index.longest_match(["capital", "w49999"], 0) == ("capital", "w49999")

    docs = [["capital"] + words]
    out = compound_tokens(docs, _ranked(["capital *"]), max_sequences=100_000)
    assert out[0][:2] == ["capital_w0", "w1"]
    assert len(out[0]) == len(words)


def test_longest_match_tries_longer_lengths_first():
    index = SequenceIndex([("a", "b"), ("a", "b", "c"), ("x", "y")])
    assert index.longest_match(["a", "b", "c"], 0) == ("a", "b", "c")
    assert index.longest_match(["a", "b", "d"], 0) == ("a", "b")
    assert index.longest_match(["a", "b"], 1) is None
    assert ("x", "y") in index


def test_compound_tokens_reports_fixed_sequences(simon_tokens):
    fixed = {}
    compound_tokens(simon_tokens, _ranked(["multi word expression*", "x y"]), fixed_sequences=fixed)
    assert fixed == {
        "multi word expression*": [
            ("multi", "word", "expression"),
            ("multi", "word", "expressions"),
        ],
        "x y": [],
    }
