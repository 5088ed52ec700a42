"""
phrasecompounder

Turn multi-word phrases into single compound tokens ("capital gains tax" →
"capital_gains_tax") in raw text or in tokenized documents.

High-level API
--------------
- compound             → one-call phrase compounding, input shape preserved
- PhraseCompounder     → configurable compounder (+ per-phrase match counts)
- PhraseDictionary     → phrase lists keyed by category
- CollocationRecord    → n-gram records usable as phrase sources
- regex_to_fixed       → resolve per-word regexes to fixed token sequences
- Errors: PatternError, SpecLengthError, DispatchError
"""

from importlib.metadata import PackageNotFoundError, version


from .errors import (
    PhraseCompoundError,
    PatternError,
    ExpansionLimitError,
    SpecLengthError,
    DispatchError,
)
from .phrase_spec import (
    PhraseSpec,
    MAX_PHRASE_WORDS,
    normalize_phrase,
    normalize_phrases,
    rank_phrases,
)
from .phrase_sources import (
    PhraseDictionary,
    CollocationRecord,
    collocations_frame,
    sort_collocations,
    phrases_from_dictionary,
    phrases_from_collocations,
)
from .text_compounder import compound_texts
from .token_compounder import (
    Vocabulary,
    regex_to_fixed,
    merge_fixed_sequences,
    compound_tokens,
)
from .compounder import (
    CompoundConfig,
    CompoundResult,
    PhraseCompounder,
    TokenizedTexts,
    compound,
)


# ---------------------------------------------------------------------
# Runtime version (single source of truth = pyproject.toml)
# ---------------------------------------------------------------------
try:
    __version__ = version("phrasecompounder")
except PackageNotFoundError:
    # Fallback when running directly from a clone without installation
    __version__ = "0.0.0"

__all__ = [
    "PhraseCompoundError",
    "PatternError",
    "ExpansionLimitError",
    "SpecLengthError",
    "DispatchError",
    "PhraseSpec",
    "MAX_PHRASE_WORDS",
    "normalize_phrase",
    "normalize_phrases",
    "rank_phrases",
    "PhraseDictionary",
    "CollocationRecord",
    "collocations_frame",
    "sort_collocations",
    "phrases_from_dictionary",
    "phrases_from_collocations",
    "compound_texts",
    "Vocabulary",
    "regex_to_fixed",
    "merge_fixed_sequences",
    "compound_tokens",
    "CompoundConfig",
    "CompoundResult",
    "PhraseCompounder",
    "TokenizedTexts",
    "compound",
    "__version__",
]
