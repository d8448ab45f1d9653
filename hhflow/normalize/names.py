"""
Company name normalisation.

Company names typed by users and company names stored in résumé work
histories rarely agree character for character: one says
``ООО "Ромашка"``, the other ``Ромашка, филиал Москва``.  The
`normalize_company_name` function reduces both to the same comparison
key by lowercasing, dropping quotes and punctuation, and removing a fixed
vocabulary of legal-form, organisation-type and geography words.

The key is only used for equality checks.  Never show it to users.
"""

from __future__ import annotations

import re
from typing import Iterable, List

# Legal forms, organisation types and region/city qualifiers.
FILLER_WORDS: List[str] = [
    # administrative geography
    "область",
    "край",
    "республика",
    "округ",
    "москва",
    "московская",
    "санкт-петербург",
    "ленинградская",
    "новосибирск",
    "район",
    "город",
    # legal forms
    "пао",
    "оао",
    "ооо",
    "зао",
    "ао",
    "llc",
    "ltd",
    "inc",
    "jsc",
    "pjsc",
    # organisation types
    "группа",
    "групп",
    "компаний",
    "компания",
    "корпорация",
    "холдинг",
    "филиал",
    "представительство",
    "representative office",
    "company",
    "group",
    "holding",
    "branch",
]

_QUOTES = "\"'«»“”„‘’`"
_QUOTE_RE = re.compile("[" + re.escape(_QUOTES) + "]")
# Anything that is not a word character, whitespace or a hyphen.
_PUNCT_RE = re.compile(r"[^\w\s-]")
# Hyphens that do not join two word characters.
_LOOSE_HYPHEN_RE = re.compile(r"(?<!\w)-|-(?!\w)")
_SPACE_RE = re.compile(r"\s+")


def _filler_pattern(words: Iterable[str]) -> re.Pattern[str]:
    # Longest first so multi-word phrases win over their parts.
    ordered = sorted({w.lower() for w in words}, key=len, reverse=True)
    alternation = "|".join(re.escape(w).replace(r"\ ", r"\s+") for w in ordered)
    return re.compile(rf"(?<![\w-])(?:{alternation})(?![\w-])")


_FILLER_RE = _filler_pattern(FILLER_WORDS)


def _strip_once(name: str) -> str:
    name = name.lower()
    name = _QUOTE_RE.sub(" ", name)
    name = _PUNCT_RE.sub(" ", name)
    name = _LOOSE_HYPHEN_RE.sub(" ", name)
    name = _SPACE_RE.sub(" ", name).strip()
    name = _FILLER_RE.sub(" ", name)
    return _SPACE_RE.sub(" ", name).strip()


def normalize_company_name(name: object) -> str:
    """Return the comparison key for a company name.

    Args:
        name: Raw company name.  ``None`` and non-string values are
            accepted and normalise to an empty string.

    Returns:
        The normalised name, possibly empty.  An empty result means the
        name carried nothing but filler and should be treated as
        unmatched.

    The function is idempotent: removing one filler word can bring two
    halves of a filler phrase together, so stripping repeats until the
    value stops changing.
    """
    if not isinstance(name, str):
        return ""
    current = _strip_once(name)
    while True:
        stripped = _strip_once(current)
        if stripped == current:
            return current
        current = stripped


def same_company(left: object, right: object) -> bool:
    """True when both names normalise to the same non-empty key."""
    key = normalize_company_name(left)
    return bool(key) and key == normalize_company_name(right)
