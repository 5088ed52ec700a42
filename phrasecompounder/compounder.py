"""
compounder.py

Public entry point of phrasecompounder: routes an input (raw text or
tokenized documents) and a phrase source (pattern list, dictionary or
collocation table) to the right normalizer and compounder.

Routing
-------
Inputs are classified as

- "text"   : ``str``, a list / tuple of ``str``, or a pandas Series of ``str``;
- "tokens" : :class:`TokenizedTexts`, or a list / tuple whose items are
             sequences of ``str``.

Phrase sources are classified as

- "patterns"     : a phrase string or a sequence of phrases;
- "dictionary"   : :class:`PhraseDictionary` or any mapping;
- "collocations" : a DataFrame with word1/word2[/word3] columns, or a
                   sequence of :class:`CollocationRecord`.

Every (input, source) pair listed in ``ROUTES`` is supported; anything else
raises :class:`DispatchError`.

Quick usage
-----------
    from phrasecompounder import compound

    compound(
        "The new law included a capital gains tax, and an inheritance tax.",
        ["tax", "income tax", "capital gains tax", "inheritance tax"],
    )
    # 'The new law included a capital_gains_tax, and an inheritance_tax.'
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import (
    Any,
    Callable,
    Dict,
    Iterable,
    Iterator,
    List,
    Literal,
    Mapping,
    Optional,
    Sequence,
    Tuple,
    Union,
)

import pandas as pd
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .errors import DispatchError
from .phrase_sources import (
    CollocationRecord,
    PhraseDictionary,
    is_collocation_frame,
    phrases_from_collocations,
    phrases_from_dictionary,
)
from .phrase_spec import PhraseSpec, ValueType, normalize_phrases, rank_phrases
from .text_compounder import compound_texts
from .token_compounder import FixedSequence, Vocabulary, compound_tokens


InputKind = Literal["text", "tokens"]
SourceKind = Literal["patterns", "dictionary", "collocations"]

ROUTES: Dict[Tuple[str, str], str] = {
    ("text", "patterns"): "text",
    ("text", "dictionary"): "text",
    ("text", "collocations"): "text",
    ("tokens", "patterns"): "tokens",
    ("tokens", "dictionary"): "tokens",
    ("tokens", "collocations"): "tokens",
}

DEFAULT_MAX_FIXED_SEQUENCES = 100_000


# ---------------------------------------------------------------------
# Configuration and containers
# ---------------------------------------------------------------------


class CompoundConfig(BaseModel):
    """
    Validated options for a compounding run.

    Attributes
    ----------
    concatenator:
        String joining the words of a compound token. Must be non-empty and
        contain no whitespace, otherwise the compound would be split again
        by any whitespace tokenizer.
    valuetype:
        How phrase words are interpreted: "glob" (``*``/``?`` wildcards),
        "fixed" (same as glob) or "regex".
    case_insensitive:
        Ignore case when matching.
    max_fixed_sequences:
        Token mode only: per-phrase cap on the number of fixed token
        sequences a wildcard phrase may expand to. ``None`` disables it.
    """

    model_config = ConfigDict(frozen=True)

    concatenator: str = Field(
        "_",
        min_length=1,
        description="Joining string for compound tokens.",
    )
    valuetype: ValueType = Field(
        "glob",
        description="Pattern type of phrase words: glob, fixed or regex.",
    )
    case_insensitive: bool = Field(
        True,
        description="Ignore case when matching phrases.",
    )
    max_fixed_sequences: Optional[int] = Field(
        DEFAULT_MAX_FIXED_SEQUENCES,
        ge=1,
        description="Per-phrase cap on fixed-sequence expansion in token mode.",
    )

    @field_validator("concatenator")
    @classmethod
    def _concatenator_has_no_whitespace(cls, value: str) -> str:
        if any(ch.isspace() for ch in value):
            raise ValueError("concatenator must not contain whitespace")
        return value


@dataclass
class TokenizedTexts:
    """
    Tokenized documents, one list of tokens per document.

    Wrapping documents in this class marks them unambiguously as token
    input; compounding returns a new TokenizedTexts with the same names.
    """

    documents: List[List[str]]
    names: Optional[List[str]] = None

    def __len__(self) -> int:
        return len(self.documents)

    def __iter__(self) -> Iterator[List[str]]:
        return iter(self.documents)

    def __getitem__(self, i: int) -> List[str]:
        return self.documents[i]


@dataclass
class CompoundResult:
    """
    Output of :meth:`PhraseCompounder.compound_with_details`.

    Attributes
    ----------
    output:
        The compounded input, in the same shape and type as the input.
    phrases:
        Ranked PhraseSpec objects, in the order they were applied.
    phrase_counts_df:
        One row per phrase with columns:
            - 'phrase'            : phrase string
            - 'n_words'           : word count
            - 'n_matches'         : number of replacements / merges
            - 'n_fixed_sequences' : (token mode only) size of the expansion
    fixed_sequences:
        Token mode: phrase → fixed token sequences it resolved to.
        Empty in text mode.
    config:
        Run-time options plus the dispatch route, for audit trails.
    """

    output: Any
    phrases: List[PhraseSpec]
    phrase_counts_df: pd.DataFrame
    fixed_sequences: Dict[str, List[FixedSequence]]
    config: Dict[str, Any]


# ---------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------


def _is_str_sequence(obj: Any) -> bool:
    return isinstance(obj, (list, tuple)) and all(isinstance(x, str) for x in obj)


def _is_missing(value: Any) -> bool:
    return value is None or (pd.api.types.is_scalar(value) and pd.isna(value))


def classify_input(obj: Any) -> Optional[InputKind]:
    """Return "text", "tokens", or None when the input is not supported."""
    if isinstance(obj, TokenizedTexts):
        return "tokens"
    if isinstance(obj, str):
        return "text"
    if isinstance(obj, pd.Series):
        if all(isinstance(v, str) or _is_missing(v) for v in obj):
            return "text"
        return None
    if isinstance(obj, (list, tuple)):
        if _is_str_sequence(obj):
            return "text"
        if all(_is_str_sequence(doc) for doc in obj):
            return "tokens"
    return None


def classify_source(phrases: Any) -> Optional[SourceKind]:
    """Return "patterns", "dictionary", "collocations", or None."""
    if isinstance(phrases, str):
        return "patterns"
    if isinstance(phrases, (PhraseDictionary, Mapping)):
        return "dictionary"
    if isinstance(phrases, pd.DataFrame):
        return "collocations" if is_collocation_frame(phrases) else None
    if isinstance(phrases, (list, tuple)):
        if phrases and all(isinstance(p, CollocationRecord) for p in phrases):
            return "collocations"
        if all(isinstance(p, str) or _is_str_sequence(p) for p in phrases):
            return "patterns"
    return None


def route(obj: Any, phrases: Any) -> Tuple[InputKind, SourceKind]:
    """
    Classify an (input, phrase source) pair and check it against ``ROUTES``.

    Raises
    ------
    DispatchError
        Naming both types when no compounder handles the combination.
    """
    input_kind = classify_input(obj)
    source_kind = classify_source(phrases)
    if (input_kind, source_kind) not in ROUTES:
        raise DispatchError(
            "No compounder for input of type "
            f"{type(obj).__name__!r} ({input_kind or 'unsupported'}) with phrases of type "
            f"{type(phrases).__name__!r} ({source_kind or 'unsupported'})."
        )
    return input_kind, source_kind


# ---------------------------------------------------------------------
# PhraseCompounder
# ---------------------------------------------------------------------


class PhraseCompounder:
    """
    Merge multi-word phrases into single concatenator-joined tokens.

    Responsibilities
    ----------------
    - Turn a phrase source (list, dictionary, collocation table) into
      normalized PhraseSpec objects.
    - Rank phrases longest first.
    - Apply them to raw text (regex substitution) or to tokenized documents
      (vocabulary-resolved fixed-sequence merging).

    Every call is a pure transformation: inputs are never modified and the
    output has the same shape as the input.
    """

    def __init__(
        self,
        concatenator: str = "_",
        valuetype: ValueType = "glob",
        case_insensitive: bool = True,
        max_fixed_sequences: Optional[int] = DEFAULT_MAX_FIXED_SEQUENCES,
        logger: Optional[Callable[[str], None]] = None,
    ) -> None:
        """
        Parameters
        ----------
        concatenator:
            Joining string for compound tokens (default ``"_"``).
        valuetype:
            "glob" (default), "fixed" or "regex".
        case_insensitive:
            Ignore case when matching (default True).
        max_fixed_sequences:
            Token mode: cap on the expansion of a single wildcard phrase.
        logger:
            Optional callback receiving progress messages when
            ``verbose=True``. Falls back to ``print``.
        """
        self.config = CompoundConfig(
            concatenator=concatenator,
            valuetype=valuetype,
            case_insensitive=case_insensitive,
            max_fixed_sequences=max_fixed_sequences,
        )
        self.logger = logger

    def _log(self, message: str, verbose: bool = True) -> None:
        if not verbose:
            return
        if self.logger is not None:
            self.logger(message)
        else:
            print(message)

    # ------------------------------------------------------------------
    # Phrase preparation
    # ------------------------------------------------------------------

    def prepare_phrases(
        self,
        phrases: Any,
        source_kind: Optional[SourceKind] = None,
        verbose: bool = False,
    ) -> List[PhraseSpec]:
        """
        Normalize and rank a phrase source.

        Raises
        ------
        PatternError, SpecLengthError
            On the first invalid phrase; nothing is returned in that case.
        DispatchError
            If ``phrases`` is not a supported phrase source.
        """
        if source_kind is None:
            source_kind = classify_source(phrases)

        log_fn = self._log if verbose else None
        if source_kind == "patterns":
            raw: Iterable[Union[str, Sequence[str]]] = [phrases] if isinstance(phrases, str) else phrases
        elif source_kind == "dictionary":
            raw = phrases_from_dictionary(phrases, log_fn=log_fn)
        elif source_kind == "collocations":
            raw = phrases_from_collocations(phrases)
        else:
            raise DispatchError(f"Unsupported phrase source of type {type(phrases).__name__!r}.")

        specs = rank_phrases(
            normalize_phrases(
                raw,
                valuetype=self.config.valuetype,
                case_insensitive=self.config.case_insensitive,
            )
        )
        self._log(
            f"[PhraseCompounder] Prepared {len(specs)} phrase(s) from {source_kind} source "
            f"(longest: {specs[0].n_words if specs else 0} words).",
            verbose,
        )
        return specs

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def compound(
        self,
        obj: Any,
        phrases: Any,
        *,
        types: Optional[Union[Vocabulary, Iterable[str]]] = None,
        verbose: bool = False,
    ) -> Any:
        """
        Compound ``phrases`` in ``obj`` and return the result in the shape
        of ``obj``.

        Parameters
        ----------
        obj:
            Text (str / list of str / Series) or tokenized documents.
        phrases:
            Phrase list, dictionary, or collocation table.
        types:
            Token mode: optional precomputed vocabulary.
        verbose:
            Emit progress messages through the logger.
        """
        return self.compound_with_details(obj, phrases, types=types, verbose=verbose).output

    def compound_with_details(
        self,
        obj: Any,
        phrases: Any,
        *,
        types: Optional[Union[Vocabulary, Iterable[str]]] = None,
        verbose: bool = False,
    ) -> CompoundResult:
        """
        Same as :meth:`compound`, but also returns the ranked phrases,
        per-phrase match counts, the resolved fixed sequences (token mode)
        and the run configuration.
        """
        input_kind, source_kind = route(obj, phrases)
        specs = self.prepare_phrases(phrases, source_kind=source_kind, verbose=verbose)
        counts: Dict[str, int] = {}
        fixed_sequences: Dict[str, List[FixedSequence]] = {}

        if ROUTES[(input_kind, source_kind)] == "text":
            output = compound_texts(obj, specs, self.config.concatenator, counts=counts)
        else:
            output = self._compound_tokens(obj, specs, types, counts, fixed_sequences, verbose)

        rows = []
        for spec in specs:
            row: Dict[str, Any] = {
                "phrase": spec.phrase,
                "n_words": spec.n_words,
                "n_matches": counts.get(spec.phrase, 0),
            }
            if input_kind == "tokens":
                row["n_fixed_sequences"] = len(fixed_sequences.get(spec.phrase, []))
            rows.append(row)
        columns = ["phrase", "n_words", "n_matches"]
        if input_kind == "tokens":
            columns.append("n_fixed_sequences")
        phrase_counts_df = pd.DataFrame(rows, columns=columns)

        self._log(
            f"[PhraseCompounder] {int(phrase_counts_df['n_matches'].sum())} compound token(s) "
            f"created in {input_kind} mode.",
            verbose,
        )

        config = self.config.model_dump()
        config.update({"input_kind": input_kind, "source_kind": source_kind})

        return CompoundResult(
            output=output,
            phrases=specs,
            phrase_counts_df=phrase_counts_df,
            fixed_sequences=fixed_sequences,
            config=config,
        )

    # ------------------------------------------------------------------
    # Token mode
    # ------------------------------------------------------------------

    def _compound_tokens(
        self,
        obj: Any,
        specs: List[PhraseSpec],
        types: Optional[Union[Vocabulary, Iterable[str]]],
        counts: Dict[str, int],
        fixed_sequences: Dict[str, List[FixedSequence]],
        verbose: bool,
    ) -> Any:
        documents = obj.documents if isinstance(obj, TokenizedTexts) else obj

        merged = compound_tokens(
            documents,
            specs,
            concatenator=self.config.concatenator,
            types=types,
            max_sequences=self.config.max_fixed_sequences,
            counts=counts,
            log_fn=self._log if verbose else None,
            fixed_sequences=fixed_sequences,
        )

        if isinstance(obj, TokenizedTexts):
            return TokenizedTexts(documents=merged, names=obj.names)
        merged_docs = [tuple(m) if isinstance(doc, tuple) else m for m, doc in zip(merged, documents)]
        return tuple(merged_docs) if isinstance(obj, tuple) else merged_docs


# ---------------------------------------------------------------------
# Functional API
# ---------------------------------------------------------------------


def compound(
    text_or_tokens: Any,
    phrases: Any,
    concatenator: str = "_",
    valuetype: ValueType = "glob",
    case_insensitive: bool = True,
    *,
    mode: Optional[ValueType] = None,
    max_fixed_sequences: Optional[int] = DEFAULT_MAX_FIXED_SEQUENCES,
    types: Optional[Union[Vocabulary, Iterable[str]]] = None,
) -> Any:
    """
    Convert multi-word phrases into single compound tokens.

    Parameters
    ----------
    text_or_tokens:
        A string, a sequence of strings (one per document), a pandas Series
        of strings, or tokenized documents (:class:`TokenizedTexts` or a
        sequence of token sequences).
    phrases:
        A phrase string, a list of phrases, a dictionary of phrase lists, or
        a collocation table.
    concatenator:
        Joining string for compound tokens.
    valuetype:
        "glob" (default), "fixed" or "regex". ``mode`` is accepted as an
        alias.
    case_insensitive:
        Ignore case when matching.
    max_fixed_sequences:
        Token mode: per-phrase cap on wildcard expansion.
    types:
        Token mode: optional precomputed vocabulary.

    Returns
    -------
    The input, in its original shape, with matched phrases merged.

    Raises
    ------
    PatternError
        A phrase pattern does not compile, or is empty.
    SpecLengthError
        A phrase has more than 9 words.
    DispatchError
        The input / phrase source combination is not supported.
    """
    compounder = PhraseCompounder(
        concatenator=concatenator,
        valuetype=mode if mode is not None else valuetype,
        case_insensitive=case_insensitive,
        max_fixed_sequences=max_fixed_sequences,
    )
    return compounder.compound(text_or_tokens, phrases, types=types)
