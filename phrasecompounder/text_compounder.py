"""
text_compounder.py

Text-mode compounding: merge phrases inside raw strings by regex substitution.

For a phrase ``(p1 … pn)`` we build::

    (\\b(?:p1))\\s+((?:p2))\\s+ … \\s+((?:pn)\\b)

and replace each match with the captured words joined by the concatenator,
so ``"capital  gains\\ntax"`` becomes ``"capital_gains_tax"``. Phrases are
applied one after another in rank order; each pass sees the output of the
previous one.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence, Tuple, Union
import re

import pandas as pd

from .errors import PatternError
from .phrase_spec import PhraseSpec


TextInput = Union[str, Sequence[str], pd.Series]


def _group_name(i: int) -> str:
    # Named groups keep word positions stable even if a regex word-pattern
    # brings its own capture groups.
    return f"_pcw{i}"


def compile_phrase_regex(spec: PhraseSpec) -> re.Pattern:
    """
    Build the search regex for one phrase.

    Raises
    ------
    PatternError
        If the assembled expression does not compile.
    """
    n = spec.n_words
    parts: List[str] = []
    for i, pattern in enumerate(spec.text_patterns):
        prefix = r"\b" if i == 0 else ""
        suffix = r"\b" if i == n - 1 else ""
        # (?:...) keeps a top-level alternation inside the word boundaries
        parts.append(f"(?P<{_group_name(i)}>{prefix}(?:{pattern}){suffix})")
    expression = r"\s+".join(parts)

    try:
        return re.compile(expression, spec.flags)
    except re.error as e:
        raise PatternError(
            f"Could not compile phrase {spec.phrase!r} as {expression!r}: {e}",
            phrase=spec.phrase,
        ) from e


def _joiner(n_words: int, concatenator: str):
    names = [_group_name(i) for i in range(n_words)]

    def _replace(match: re.Match) -> str:
        return concatenator.join(match.group(name) for name in names)

    return _replace


def compile_phrases(specs: Sequence[PhraseSpec]) -> List[Tuple[PhraseSpec, re.Pattern]]:
    """Compile every phrase up front so a bad pattern aborts before any output."""
    return [(spec, compile_phrase_regex(spec)) for spec in specs]


def compound_string(
    text: str,
    compiled: Sequence[Tuple[PhraseSpec, re.Pattern]],
    concatenator: str = "_",
    counts: Optional[Dict[str, int]] = None,
) -> str:
    """Apply every compiled phrase, in order, to a single string."""
    for spec, regex in compiled:
        if spec.n_words < 2:
            continue
        text, n = regex.subn(_joiner(spec.n_words, concatenator), text)
        if counts is not None:
            counts[spec.phrase] = counts.get(spec.phrase, 0) + n
    return text


def compound_texts(
    texts: TextInput,
    specs: Sequence[PhraseSpec],
    concatenator: str = "_",
    counts: Optional[Dict[str, int]] = None,
) -> TextInput:
    """
    Compound phrases in a string or a collection of strings.

    Parameters
    ----------
    texts:
        A single string, a list / tuple of strings, or a pandas Series of
        strings. The output has the same type (and index, for a Series).
    specs:
        Phrases in the order they should be applied (normally the output of
        :func:`~phrasecompounder.phrase_spec.rank_phrases`).
    concatenator:
        String inserted between the words of a matched phrase.
    counts:
        Optional dict updated in place with phrase → number of replacements.

    Returns
    -------
    Same type as ``texts``, with every matched phrase joined into one token.

    Example
    -------
    >>> from phrasecompounder.phrase_spec import normalize_phrases, rank_phrases
    >>> specs = rank_phrases(normalize_phrases(["gains tax", "capital gains tax"]))
    >>> compound_texts("a capital gains tax", specs)
    'a capital_gains_tax'
    """
    compiled = compile_phrases(specs)

    if isinstance(texts, str):
        return compound_string(texts, compiled, concatenator, counts)

    if isinstance(texts, pd.Series):
        return texts.map(
            lambda t: compound_string(t, compiled, concatenator, counts),
            na_action="ignore",
        )

    out = [compound_string(t, compiled, concatenator, counts) for t in texts]
    if isinstance(texts, tuple):
        return tuple(out)
    return out
