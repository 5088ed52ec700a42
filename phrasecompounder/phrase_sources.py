"""
phrase_sources.py

Phrase sources other than a plain list of patterns:

- PhraseDictionary : key → list of entries, where multi-word entries may be
  stored pre-joined with the dictionary's concatenator ("capital_gains_tax").
- Collocation tables : n-gram records (word1, word2, word3 + statistics), as
  produced by a collocation finder, given as a pandas DataFrame or as a list
  of :class:`CollocationRecord`.

Both are reduced to a list of whitespace-delimited phrase strings, which
are then normalized like any other phrase list.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union
import re

import pandas as pd


COLLOCATION_WORD_COLUMNS: Tuple[str, str, str] = ("word1", "word2", "word3")

_whitespace_re = re.compile(r"\s")


# ---------------------------------------------------------------------
# Dictionaries
# ---------------------------------------------------------------------


@dataclass
class PhraseDictionary:
    """
    A dictionary of phrase lists.

    Attributes
    ----------
    entries:
        Mapping from key (e.g. a category name) to a list of entries.
        Entries may be single words, whitespace-delimited phrases, or
        compounds already joined with ``concatenator``.
    concatenator:
        Joining character used inside pre-compounded entries.
    """

    entries: Dict[str, List[str]]
    concatenator: str = "_"

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any], concatenator: str = "_") -> "PhraseDictionary":
        """Build from a plain mapping; a bare string value counts as one entry."""
        entries: Dict[str, List[str]] = {}
        for key, values in mapping.items():
            if isinstance(values, str):
                entries[str(key)] = [values]
            else:
                entries[str(key)] = [str(v) for v in values]
        return cls(entries=entries, concatenator=concatenator)

    def values(self) -> List[str]:
        """All entries across keys, in key order."""
        return [value for values in self.entries.values() for value in values]


def phrases_from_dictionary(
    dictionary: Union[PhraseDictionary, Mapping[str, Any]],
    log_fn: Optional[Callable[[str], None]] = None,
) -> List[str]:
    """
    Extract the multi-word phrases of a dictionary.

    Entries joined with the dictionary's concatenator are treated as prior
    compounds: the concatenator is replaced with a single space, giving a
    word sequence that can be matched again. Entries with whitespace are
    kept as they are. Single-word entries are dropped, since compounding a
    single word changes nothing.

    Example
    -------
    >>> d = PhraseDictionary({"tax": ["tax", "income_tax", "capital gains tax"]})
    >>> phrases_from_dictionary(d)
    ['income tax', 'capital gains tax']
    """
    if not isinstance(dictionary, PhraseDictionary):
        dictionary = PhraseDictionary.from_mapping(dictionary)

    concatenator = dictionary.concatenator
    phrases: List[str] = []
    dropped = 0
    for entry in dictionary.values():
        if concatenator and concatenator in entry:
            phrases.append(entry.replace(concatenator, " ").strip())
        elif _whitespace_re.search(entry.strip()):
            phrases.append(entry.strip())
        else:
            dropped += 1

    if dropped and log_fn is not None:
        log_fn(f"[PhraseCompounder] Ignored {dropped} single-word dictionary entr{'y' if dropped == 1 else 'ies'}.")

    return phrases


# ---------------------------------------------------------------------
# Collocations
# ---------------------------------------------------------------------


@dataclass
class CollocationRecord:
    """
    One collocation: up to three words plus statistics.

    ``word3`` is empty for bigrams. ``stats`` holds any extra score columns
    (e.g. ``{"G2": 14.3, "pmi": 5.1}``) and becomes extra DataFrame columns.
    """

    word1: str
    word2: str
    word3: str = ""
    count: int = 0
    stats: Dict[str, float] = field(default_factory=dict)

    def words(self) -> List[str]:
        return [w for w in (self.word1, self.word2, self.word3) if w]


def collocations_frame(records: Iterable[CollocationRecord]) -> pd.DataFrame:
    """Turn CollocationRecord objects into a collocation DataFrame."""
    rows: List[Dict[str, Any]] = []
    for record in records:
        row = asdict(record)
        stats = row.pop("stats")
        row.update(stats)
        rows.append(row)
    if not rows:
        return pd.DataFrame(columns=list(COLLOCATION_WORD_COLUMNS) + ["count"])
    return pd.DataFrame(rows)


def is_collocation_frame(obj: Any) -> bool:
    return isinstance(obj, pd.DataFrame) and {"word1", "word2"}.issubset(obj.columns)


def sort_collocations(collocations: pd.DataFrame) -> pd.DataFrame:
    """
    Sort a collocation table so that longer n-grams come first.

    Rows are ordered by ``word3`` descending, then ``word1`` ascending.
    Bigrams have an empty ``word3`` and therefore sort after every trigram.
    The input frame is not modified.
    """
    df = collocations.copy()
    if "word3" not in df.columns:
        df["word3"] = ""
    for column in COLLOCATION_WORD_COLUMNS:
        df[column] = df[column].fillna("").astype(str)

    df = df.sort_values(["word3", "word1"], ascending=[False, True], kind="mergesort")
    return df.reset_index(drop=True)


def phrases_from_collocations(
    collocations: Union[pd.DataFrame, Sequence[CollocationRecord]],
) -> List[str]:
    """
    Turn a collocation table into phrase strings, trigrams first.

    Each row's ``word1 word2 word3`` are joined with single spaces; a
    missing / empty ``word3`` (bigram) leaves no trailing space.

    Example
    -------
    >>> df = pd.DataFrame({"word1": ["gains", "capital"],
    ...                    "word2": ["tax", "gains"],
    ...                    "word3": ["", "tax"]})
    >>> phrases_from_collocations(df)
    ['capital gains tax', 'gains tax']
    """
    if not isinstance(collocations, pd.DataFrame):
        collocations = collocations_frame(collocations)

    df = sort_collocations(collocations)
    if df.empty:
        return []
    words = df[list(COLLOCATION_WORD_COLUMNS)]
    phrases = words.apply(lambda row: " ".join(row).strip(), axis=1)
    return [re.sub(r"\s+", " ", p) for p in phrases.tolist() if p]
