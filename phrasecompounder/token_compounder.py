"""
token_compounder.py

Token-mode compounding for already-tokenized documents.

Raw-text regex substitution does not apply once text has been split into
tokens. Instead each phrase pattern is *resolved* against the vocabulary of
the corpus:

1. Vocabulary   : the distinct token types of the corpus.
2. Per position : every type whose whole text matches the position's regex.
3. Expansion    : the cartesian product of the per-position matches, i.e.
                  every concrete token sequence the phrase can realize in
                  this corpus (``regex_to_fixed``).
4. Merge        : a left-to-right scan of each document that replaces any
                  run equal to one of those sequences by a single joined
                  token, trying longer sequences first.

The expansion is combinatorial: a phrase like ``"* * tax"`` over a large
vocabulary explodes. It is generated lazily, and its size is checked
against ``max_sequences`` before anything is enumerated.

Quick usage
-----------
    from phrasecompounder.token_compounder import regex_to_fixed

    toks = [["the", "multi", "word", "expressions", "rock"]]
    regex_to_fixed(toks, [["multi", "word", "expression.*"]])
    # [('multi', 'word', 'expressions')]
"""

from __future__ import annotations

from itertools import product
from math import prod
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Sequence, Tuple, Union
import re

import numpy as np
import pandas as pd

from .errors import ExpansionLimitError
from .phrase_spec import PhraseSpec, _compile_or_raise


TokenDocument = Sequence[str]
FixedSequence = Tuple[str, ...]


# ---------------------------------------------------------------------
# Vocabulary
# ---------------------------------------------------------------------


class Vocabulary:
    """
    Distinct token types of a tokenized corpus, in first-occurrence order.

    Read-only. Build it once with :meth:`from_documents` and pass it to
    :func:`regex_to_fixed` (``types=``) to avoid recomputing it on every
    call over the same corpus.
    """

    def __init__(self, types: Iterable[str]) -> None:
        series = pd.Series(list(types), dtype=object)
        self._types = np.asarray(pd.unique(series), dtype=object)
        self._series = pd.Series(self._types, dtype=object)
        self._lookup = frozenset(self._types.tolist())

    @classmethod
    def from_documents(cls, documents: Iterable[TokenDocument]) -> "Vocabulary":
        return cls(token for doc in documents for token in doc)

    @property
    def types(self) -> List[str]:
        return self._types.tolist()

    def __len__(self) -> int:
        return len(self._types)

    def __iter__(self) -> Iterator[str]:
        return iter(self._types.tolist())

    def __contains__(self, token: object) -> bool:
        return token in self._lookup

    def match(self, pattern: str, case_insensitive: bool = False) -> List[str]:
        """
        Return the types whose *whole* text matches ``pattern``.

        >>> Vocabulary(["tax", "taxes", "Tax"]).match("tax")
        ['tax']
        >>> Vocabulary(["tax", "taxes", "Tax"]).match("tax", case_insensitive=True)
        ['tax', 'Tax']
        """
        if len(self._types) == 0:
            return []
        flags = re.IGNORECASE if case_insensitive else 0
        mask = self._series.str.fullmatch(pattern, flags=flags, na=False)
        return self._types[np.asarray(mask, dtype=bool)].tolist()


def as_vocabulary(
    documents: Iterable[TokenDocument],
    types: Optional[Union[Vocabulary, Iterable[str]]],
) -> Vocabulary:
    if types is None:
        return Vocabulary.from_documents(documents)
    if isinstance(types, Vocabulary):
        return types
    return Vocabulary(types)


# ---------------------------------------------------------------------
# regex → fixed sequences
# ---------------------------------------------------------------------


def iter_fixed_sequences(
    patterns: Sequence[str],
    vocabulary: Vocabulary,
    case_insensitive: bool = False,
    max_sequences: Optional[int] = None,
    label: Optional[str] = None,
) -> Iterator[FixedSequence]:
    """
    Lazily yield every fixed token sequence one phrase can realize.

    Parameters
    ----------
    patterns:
        One regex per word position.
    vocabulary:
        Types to resolve against.
    case_insensitive:
        Ignore case when matching types.
    max_sequences:
        Upper bound on the size of the expansion; ``None`` for no bound.
    label:
        Name of the phrase used in the error message.

    Raises
    ------
    PatternError
        If a position's pattern does not compile.
    ExpansionLimitError
        If the number of combinations exceeds ``max_sequences``. Raised on
        the first ``next()``, before any sequence is yielded.
    """
    name = label if label is not None else " ".join(patterns)
    flags = re.IGNORECASE if case_insensitive else 0
    for p in patterns:
        _compile_or_raise(p, flags, name)

    matches = [vocabulary.match(p, case_insensitive=case_insensitive) for p in patterns]
    if not matches or any(not m for m in matches):
        return

    size = prod(len(m) for m in matches)
    if max_sequences is not None and size > max_sequences:
        raise ExpansionLimitError(
            f"Phrase {name!r} expands to {size} fixed token sequences "
            f"(limit {max_sequences}). Narrow the pattern or raise the limit.",
            phrase=name,
        )

    yield from product(*matches)


def regex_to_fixed(
    documents: Iterable[TokenDocument],
    patterns: Iterable[Sequence[str]],
    case_insensitive: bool = False,
    types: Optional[Union[Vocabulary, Iterable[str]]] = None,
    max_sequences: Optional[int] = None,
) -> List[FixedSequence]:
    """
    Resolve per-position regex patterns into the fixed token sequences they
    can match in ``documents``.

    Parameters
    ----------
    documents:
        Tokenized documents; only used to build the vocabulary when
        ``types`` is not given.
    patterns:
        Each item is one phrase: a sequence of regexes, one per word (a bare
        string is a one-word phrase). A regex must match the whole token.
    case_insensitive:
        Ignore case when matching.
    types:
        Optional precomputed :class:`Vocabulary` (or iterable of types).
    max_sequences:
        Per-phrase cap on the expansion size.

    Returns
    -------
    list of tuple
        Fixed sequences, phrase by phrase, without duplicates. A phrase with
        a position that matches no type contributes nothing.

    Raises
    ------
    PatternError
        If a pattern does not compile; names the offending phrase.
    ExpansionLimitError
        If one phrase expands past ``max_sequences``.
    """
    vocabulary = as_vocabulary(documents, types)

    out: List[FixedSequence] = []
    seen = set()
    for seq_regex in patterns:
        if isinstance(seq_regex, str):
            seq_regex = [seq_regex]
        for fixed in iter_fixed_sequences(
            list(seq_regex),
            vocabulary,
            case_insensitive=case_insensitive,
            max_sequences=max_sequences,
        ):
            if fixed not in seen:
                seen.add(fixed)
                out.append(fixed)
    return out


def resolve_phrases(
    specs: Sequence[PhraseSpec],
    vocabulary: Vocabulary,
    max_sequences: Optional[int] = None,
) -> List[Tuple[PhraseSpec, List[FixedSequence]]]:
    """
    Resolve every phrase of a ranked batch against ``vocabulary``.

    The whole batch is expanded before returning, so an expansion over the
    limit aborts before any document is touched.
    """
    return [
        (
            spec,
            list(
                iter_fixed_sequences(
                    spec.token_patterns,
                    vocabulary,
                    case_insensitive=spec.case_insensitive,
                    max_sequences=max_sequences,
                    label=spec.phrase,
                )
            ),
        )
        for spec in specs
    ]


# ---------------------------------------------------------------------
# Merge step
# ---------------------------------------------------------------------


class SequenceIndex:
    """
    Fixed sequences keyed for longest-first lookup.

    Sequences live in one hash set; for each first token the index keeps the
    distinct lengths of the sequences starting with it, longest first. A
    lookup at a document position therefore costs one slice and one set
    probe per length, however many sequences share that first token.
    Single-token sequences are ignored since merging them is a no-op.
    """

    def __init__(self, sequences: Iterable[FixedSequence] = ()) -> None:
        self._lengths: Dict[str, List[int]] = {}
        self._origin: Dict[FixedSequence, str] = {}
        for seq in sequences:
            self.add(seq)

    def add(self, sequence: Sequence[str], origin: Optional[str] = None) -> None:
        seq = tuple(sequence)
        if len(seq) < 2 or seq in self._origin:
            return
        self._origin[seq] = origin if origin is not None else " ".join(seq)
        lengths = self._lengths.setdefault(seq[0], [])
        if len(seq) not in lengths:
            # phrases are short, so this list stays tiny
            lengths.append(len(seq))
            lengths.sort(reverse=True)

    def longest_match(self, tokens: Sequence[str], start: int) -> Optional[FixedSequence]:
        """Return the longest indexed sequence at ``tokens[start:]``, or None."""
        n = len(tokens)
        for length in self._lengths.get(tokens[start], ()):
            end = start + length
            if end > n:
                continue
            candidate = tuple(tokens[start:end])
            if candidate in self._origin:
                return candidate
        return None

    def origin(self, sequence: FixedSequence) -> str:
        return self._origin[sequence]

    def __contains__(self, sequence: object) -> bool:
        return sequence in self._origin

    def __len__(self) -> int:
        return len(self._origin)


def merge_fixed_sequences(
    document: TokenDocument,
    sequences: Union[SequenceIndex, Iterable[Sequence[str]]],
    concatenator: str = "_",
    counts: Optional[Dict[str, int]] = None,
) -> List[str]:
    """
    Merge every occurrence of the fixed sequences in one document.

    Scans left to right. At each position the longest sequence starting
    there wins; its run is replaced by one token joined with
    ``concatenator`` and the scan continues after it. The input is not
    modified and the output is never longer than the input.

    >>> merge_fixed_sequences(["a", "capital", "gains", "tax"],
    ...                       [("gains", "tax"), ("capital", "gains", "tax")])
    ['a', 'capital_gains_tax']
    """
    index = sequences if isinstance(sequences, SequenceIndex) else SequenceIndex(sequences)

    tokens = list(document)
    n = len(tokens)
    out: List[str] = []
    i = 0
    while i < n:
        matched = index.longest_match(tokens, i)
        if matched is None:
            out.append(tokens[i])
            i += 1
            continue

        out.append(concatenator.join(matched))
        i += len(matched)
        if counts is not None:
            phrase = index.origin(matched)
            counts[phrase] = counts.get(phrase, 0) + 1

    return out


def compound_tokens(
    documents: Sequence[TokenDocument],
    specs: Sequence[PhraseSpec],
    concatenator: str = "_",
    types: Optional[Union[Vocabulary, Iterable[str]]] = None,
    max_sequences: Optional[int] = None,
    counts: Optional[Dict[str, int]] = None,
    log_fn: Optional[Callable[[str], None]] = None,
    fixed_sequences: Optional[Dict[str, List[FixedSequence]]] = None,
) -> List[List[str]]:
    """
    Compound phrases in tokenized documents.

    Parameters
    ----------
    documents:
        Sequence of token sequences.
    specs:
        Ranked phrases (see :func:`~phrasecompounder.phrase_spec.rank_phrases`).
    concatenator:
        Joining string for merged tokens.
    types:
        Optional precomputed vocabulary; computed from ``documents`` otherwise.
    max_sequences:
        Per-phrase cap on fixed-sequence expansion.
    counts:
        Optional dict updated in place with phrase → number of merges.
    log_fn:
        Optional callable receiving progress messages.
    fixed_sequences:
        Optional dict filled in place with phrase → the fixed sequences it
        resolved to.

    Returns
    -------
    list of list of str
        One new token list per input document.
    """
    vocabulary = as_vocabulary(documents, types)
    resolved = resolve_phrases(specs, vocabulary, max_sequences=max_sequences)
    if fixed_sequences is not None:
        for spec, sequences in resolved:
            fixed_sequences[spec.phrase] = sequences
    index = build_sequence_index(resolved, log_fn=log_fn)

    if log_fn is not None:
        log_fn(
            f"[PhraseCompounder] Resolved {len(specs)} phrase(s) into "
            f"{len(index)} fixed sequence(s) over {len(vocabulary)} types."
        )

    return [merge_fixed_sequences(doc, index, concatenator, counts) for doc in documents]


def build_sequence_index(
    resolved: Sequence[Tuple[PhraseSpec, List[FixedSequence]]],
    log_fn: Optional[Callable[[str], None]] = None,
) -> SequenceIndex:
    """Collect resolved sequences, in rank order, into one :class:`SequenceIndex`."""
    index = SequenceIndex()
    for spec, sequences in resolved:
        if not sequences and log_fn is not None:
            log_fn(f"[PhraseCompounder] No vocabulary match for phrase {spec.phrase!r}.")
        for seq in sequences:
            index.add(seq, origin=spec.phrase)
    return index
