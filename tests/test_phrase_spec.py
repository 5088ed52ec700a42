from __future__ import annotations

import pytest

from phrasecompounder.errors import PatternError, SpecLengthError
from phrasecompounder.phrase_spec import (
    MAX_PHRASE_WORDS,
    glob_to_text_regex,
    glob_to_token_regex,
    normalize_phrase,
    normalize_phrases,
    rank_phrases,
)


def test_glob_to_text_regex_wildcards_stay_inside_words():
    assert glob_to_text_regex("expression*") == r"expression[^\s]*"
    assert glob_to_text_regex("like?") == r"like[^\s]"


def test_glob_to_text_regex_escapes_plus():
    assert glob_to_text_regex("c++") == r"c\+\+"
    assert glob_to_text_regex("+") == r"\+"


def test_glob_to_token_regex_escapes_everything_but_wildcards():
    assert glob_to_token_regex("th??") == "th.."
    assert glob_to_token_regex("U.S.") == r"U\.S\."
    assert glob_to_token_regex("bad*") == "bad.*"


def test_normalize_phrase_splits_on_whitespace():
    spec = normalize_phrase("  capital\tgains   tax ")
    assert spec.words == ("capital", "gains", "tax")
    assert spec.phrase == "capital gains tax"
    assert spec.n_words == 3


def test_normalize_phrase_accepts_presplit_words():
    spec = normalize_phrase(["new", "york"])
    assert spec.words == ("new", "york")
    assert spec.phrase == "new york"


def test_regex_valuetype_keeps_words_verbatim():
    spec = normalize_phrase("tax(es)? rate.*", valuetype="regex")
    assert spec.text_patterns == ("tax(es)?", "rate.*")
    assert spec.token_patterns == ("tax(es)?", "rate.*")


def test_fixed_valuetype_behaves_like_glob():
    assert normalize_phrase("bad* word?", valuetype="fixed").token_patterns == (
        normalize_phrase("bad* word?", valuetype="glob").token_patterns
    )


def test_empty_phrase_is_rejected():
    with pytest.raises(PatternError):
        normalize_phrase("   ")
    with pytest.raises(PatternError):
        normalize_phrase([])


def test_phrase_length_limit():
    ok = " ".join(["w"] * MAX_PHRASE_WORDS)
    assert normalize_phrase(ok).n_words == MAX_PHRASE_WORDS

    too_long = " ".join(["w"] * (MAX_PHRASE_WORDS + 1))
    with pytest.raises(SpecLengthError) as excinfo:
        normalize_phrase(too_long)
    assert excinfo.value.phrase == too_long


def test_invalid_regex_names_the_phrase():
    with pytest.raises(PatternError) as excinfo:
        normalize_phrase("bad (word", valuetype="regex")
    assert excinfo.value.phrase == "bad (word"
    assert "bad (word" in str(excinfo.value)


def test_malformed_glob_is_a_pattern_error():
    with pytest.raises(PatternError):
        normalize_phrase("(unclosed group", valuetype="glob")


def test_unknown_valuetype():
    with pytest.raises(ValueError):
        normalize_phrase("a b", valuetype="wildcard")


def test_batch_aborts_on_first_bad_phrase():
    with pytest.raises(PatternError):
        normalize_phrases(["good phrase", "bad (x"], valuetype="regex")


def test_normalize_phrases_drops_duplicates():
    specs = normalize_phrases(["new york", "new  york"], case_insensitive=False)
    assert [s.phrase for s in specs] == ["new york"]


def test_case_variants_are_duplicates_when_ignoring_case():
    phrases = ["new york", "New York", "NEW york"]
    assert [s.phrase for s in normalize_phrases(phrases)] == ["new york"]
    assert [s.phrase for s in normalize_phrases(phrases, case_insensitive=False)] == phrases


def test_regex_case_variants_are_kept():
    specs = normalize_phrases([r"\w+ york", r"\W+ york"], valuetype="regex")
    assert len(specs) == 2


def test_rank_phrases_longest_first_and_stable():
    specs = normalize_phrases(["tax", "income tax", "capital gains tax", "inheritance tax"])
    ranked = rank_phrases(specs)
    assert [s.phrase for s in ranked] == [
        "capital gains tax",
        "income tax",
        "inheritance tax",
        "tax",
    ]


def test_rank_phrases_does_not_modify_input():
    specs = normalize_phrases(["a", "a b"])
    rank_phrases(specs)
    assert [s.phrase for s in specs] == ["a", "a b"]
