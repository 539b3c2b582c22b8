# File: ormgen/inflection.py
"""
ormgen - Inflection Engine
==========================
Deterministic English singular/plural derivation used for default names.

Resolution order for both directions:

    1. irregular table   (bidirectional, whole word)
    2. exact table       (one direction, whole word)
    3. suffix rules      (declared order, first matching suffix wins)
    4. fallback          (plural: append "s"; singular: unchanged)

Only the last ``_``-separated segment of an identifier is inflected, so
``post_tag`` becomes ``post_tags``.  Lookups are case-insensitive and a
leading capital (or an all-caps word) is preserved.

The default tables are tuned so that ``plural(singular(plural(x)))`` equals
``plural(x)`` for regular nouns; user ``Inflections`` are consulted before
the defaults.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Tuple

from ormgen.models import Inflections

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("ormgen.inflection")

SuffixRule = Tuple[str, str]

# ---------------------------------------------------------------------------
# Default tables
# ---------------------------------------------------------------------------

DEFAULT_PLURAL_RULES: Tuple[SuffixRule, ...] = (
    ("ss", "sses"),
    ("ias", "iases"),
    # Plurals of -au and -ou nouns (bureaus, bayous).
    ("aus", "aus"),
    ("ous", "ous"),
    ("us", "uses"),
    ("is", "es"),
    ("sh", "shes"),
    ("ch", "ches"),
    ("x", "xes"),
    ("z", "zes"),
    ("ay", "ays"),
    ("ey", "eys"),
    ("oy", "oys"),
    ("uy", "uys"),
    ("y", "ies"),
    ("ife", "ives"),
    # Already plural.
    ("s", "s"),
)

DEFAULT_SINGULAR_RULES: Tuple[SuffixRule, ...] = (
    ("sses", "ss"),
    ("iases", "ias"),
    ("ouses", "ouse"),
    ("auses", "ause"),
    ("uses", "us"),
    ("shes", "sh"),
    ("ches", "ch"),
    ("xes", "x"),
    ("izes", "ize"),
    ("zes", "z"),
    ("ays", "ay"),
    ("eys", "ey"),
    ("oys", "oy"),
    ("uys", "uy"),
    ("ovies", "ovie"),
    ("ies", "y"),
    # bureaus, bayous, caribous.
    ("aus", "au"),
    ("ous", "ou"),
    # Already singular.
    ("ss", "ss"),
    ("us", "us"),
    ("is", "is"),
    ("s", ""),
)

DEFAULT_UNCOUNTABLE: Tuple[str, ...] = (
    "equipment",
    "information",
    "metadata",
    "money",
    "news",
    "rice",
    "series",
    "sheep",
    "species",
    "fish",
    "deer",
)

# Nouns ending in a consonant plus "u". Their plurals end in "us" like
# status or campus, so the suffix rules cannot tell them apart.
DEFAULT_U_NOUNS: Tuple[str, ...] = (
    "emu",
    "gnu",
    "guru",
    "haiku",
    "impromptu",
    "kudzu",
    "menu",
    "snafu",
    "sudoku",
    "tiramisu",
    "tofu",
    "tutu",
    "zebu",
)

DEFAULT_IRREGULAR: Dict[str, str] = {
    "person": "people",
    "child": "children",
    "man": "men",
    "woman": "women",
    "mouse": "mice",
    "goose": "geese",
    "tooth": "teeth",
    "foot": "feet",
    "ox": "oxen",
    "datum": "data",
    "matrix": "matrices",
    "vertex": "vertices",
    "axis": "axes",
    "crisis": "crises",
    "analysis": "analyses",
    "quiz": "quizzes",
    "wife": "wives",
    "knife": "knives",
    "life": "lives",
    "half": "halves",
    "shelf": "shelves",
    "wolf": "wolves",
    "calf": "calves",
    "leaf": "leaves",
}


# ---------------------------------------------------------------------------
# Case helpers
# ---------------------------------------------------------------------------


def _restore_case(original: str, replacement: str) -> str:
    """Give a whole-word *replacement* the casing style of *original*."""
    if not replacement:
        return replacement
    if len(original) > 1 and original.isupper():
        return replacement.upper()
    if original[:1].isupper():
        return replacement[:1].upper() + replacement[1:]
    return replacement


def _apply_suffix(word: str, suffix: str, replacement: str) -> str:
    stem: str = word[: len(word) - len(suffix)]
    if len(word) > 1 and word.isupper():
        return stem + replacement.upper()
    return stem + replacement


# ---------------------------------------------------------------------------
# Inflector
# ---------------------------------------------------------------------------


class Inflector:
    """
    Singular/plural word forms from ordered rule tables.

    Usage::

        inflector = Inflector(config.inflections)
        inflector.plural("category")     # 'categories'
        inflector.singular("post_tags")  # 'post_tag'
    """

    def __init__(self, inflections: Optional[Inflections] = None) -> None:
        overrides: Inflections = inflections or Inflections()

        self._irregular: Dict[str, str] = dict(DEFAULT_IRREGULAR)
        for singular, plural in overrides.irregular.items():
            self._irregular[singular.lower()] = plural.lower()
        self._irregular_reverse: Dict[str, str] = {
            plural: singular for singular, plural in self._irregular.items()
        }

        self._plural_exact: Dict[str, str] = {w: w for w in DEFAULT_UNCOUNTABLE}
        self._singular_exact: Dict[str, str] = {w: w for w in DEFAULT_UNCOUNTABLE}
        for word in DEFAULT_U_NOUNS:
            self._plural_exact[word] = self._plural_exact[word + "s"] = word + "s"
            self._singular_exact[word] = self._singular_exact[word + "s"] = word

        self._plural_exact.update(
            {k.lower(): v.lower() for k, v in overrides.plural_exact.items()}
        )
        self._singular_exact.update(
            {k.lower(): v.lower() for k, v in overrides.singular_exact.items()}
        )

        self._plural_rules: Tuple[SuffixRule, ...] = tuple(
            (k.lower(), v.lower()) for k, v in overrides.plural.items()
        ) + DEFAULT_PLURAL_RULES
        self._singular_rules: Tuple[SuffixRule, ...] = tuple(
            (k.lower(), v.lower()) for k, v in overrides.singular.items()
        ) + DEFAULT_SINGULAR_RULES

        self._plural_cache: Dict[str, str] = {}
        self._singular_cache: Dict[str, str] = {}

        logger.debug(
            "Inflector ready: %d irregular, %d plural rules, %d singular rules.",
            len(self._irregular),
            len(self._plural_rules),
            len(self._singular_rules),
        )

    # -----------------------------------------------------------------
    # Public API
    # -----------------------------------------------------------------

    def plural(self, noun: str) -> str:
        """Plural form of *noun* (last ``_`` segment only)."""
        cached: Optional[str] = self._plural_cache.get(noun)
        if cached is None:
            cached = self._inflect_last_segment(noun, self._plural_word)
            self._plural_cache[noun] = cached
        return cached

    def singular(self, noun: str) -> str:
        """Singular form of *noun* (last ``_`` segment only)."""
        cached: Optional[str] = self._singular_cache.get(noun)
        if cached is None:
            cached = self._inflect_last_segment(noun, self._singular_word)
            self._singular_cache[noun] = cached
        return cached

    # -----------------------------------------------------------------
    # Internals
    # -----------------------------------------------------------------

    @staticmethod
    def _inflect_last_segment(noun: str, inflect) -> str:
        head, sep, tail = noun.rpartition("_")
        if not tail:
            return noun
        return f"{head}{sep}{inflect(tail)}"

    def _plural_word(self, word: str) -> str:
        lower: str = word.lower()

        if lower in self._irregular:
            return _restore_case(word, self._irregular[lower])
        if lower in self._irregular_reverse:
            return word

        if lower in self._plural_exact:
            return _restore_case(word, self._plural_exact[lower])

        for suffix, replacement in self._plural_rules:
            if lower.endswith(suffix):
                return _apply_suffix(word, suffix, replacement)

        return word + ("S" if len(word) > 1 and word.isupper() else "s")

    def _singular_word(self, word: str) -> str:
        lower: str = word.lower()

        if lower in self._irregular_reverse:
            return _restore_case(word, self._irregular_reverse[lower])
        if lower in self._irregular:
            return word

        if lower in self._singular_exact:
            return _restore_case(word, self._singular_exact[lower])

        for suffix, replacement in self._singular_rules:
            # Never strip a word down to nothing ("s" -> "").
            if lower.endswith(suffix) and len(lower) > len(suffix):
                return _apply_suffix(word, suffix, replacement)

        return word


def conflicting_irregulars(irregular: Dict[str, str]) -> List[Tuple[str, List[str]]]:
    """
    Plural forms claimed by more than one singular in *irregular*.

    Used by config validation; a conflicting set makes ``singular`` ambiguous.
    """
    claimed: Dict[str, List[str]] = {}
    for singular, plural in irregular.items():
        claimed.setdefault(plural.lower(), []).append(singular)
    return [(plural, words) for plural, words in claimed.items() if len(words) > 1]


__all__: List[str] = [
    "Inflector",
    "conflicting_irregulars",
    "DEFAULT_PLURAL_RULES",
    "DEFAULT_SINGULAR_RULES",
    "DEFAULT_IRREGULAR",
    "DEFAULT_UNCOUNTABLE",
    "DEFAULT_U_NOUNS",
]

logger.debug("ormgen.inflection loaded.")
