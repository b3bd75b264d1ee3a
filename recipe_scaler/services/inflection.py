"""Minimal English singular/plural helpers for kitchen vocabulary."""
from __future__ import annotations

# Nouns that read the same whatever the amount
UNCOUNTABLE_INGREDIENTS = frozenset({
    "flour", "sugar", "salt", "pepper", "butter", "milk", "water", "rice",
    "cheese", "bread", "oil", "honey", "cream", "garlic", "molasses",
})

IRREGULAR_PLURALS = {
    "leaf": "leaves",
    "loaf": "loaves",
    "knife": "knives",
    "half": "halves",
    "potato": "potatoes",
    "tomato": "tomatoes",
    "mango": "mangoes",
}
IRREGULAR_SINGULARS = {plural: singular for singular, plural in IRREGULAR_PLURALS.items()}

_ES_ENDINGS = ("s", "x", "z", "ch", "sh")
# "glasses" loses "es", "cheeses" only "s"
_ES_PLURAL_ENDINGS = ("sses", "xes", "zes", "ches", "shes")


def _match_case(template: str, word: str) -> str:
    if template.isupper() and len(template) > 1:
        return word.upper()
    if template[:1].isupper():
        return word[:1].upper() + word[1:]
    return word


def _suffix(word: str, suffix: str) -> str:
    return suffix.upper() if word.isupper() else suffix


def is_uncountable(name: str) -> bool:
    """True when the last word of the name is an uncountable ingredient."""
    words = name.lower().split()
    return bool(words) and words[-1] in UNCOUNTABLE_INGREDIENTS


def singularize(word: str) -> str:
    """Return the singular form of a word, keeping its capitalization.

    Examples:
        >>> singularize('Eggs')
        'Egg'
        >>> singularize('tomatoes')
        'tomato'
        >>> singularize('cups')
        'cup'
    """
    lower = word.lower()
    if lower in UNCOUNTABLE_INGREDIENTS:
        return word
    if lower in IRREGULAR_SINGULARS:
        return _match_case(word, IRREGULAR_SINGULARS[lower])
    if lower.endswith("ies") and len(lower) > 4:
        return word[:-3] + _suffix(word, "y")
    if lower.endswith(_ES_PLURAL_ENDINGS):
        return word[:-2]
    if lower.endswith("s") and not lower.endswith(("ss", "us")) and len(lower) > 1:
        return word[:-1]
    return word


def pluralize(word: str) -> str:
    """Return the plural form of a word, keeping its capitalization.

    Examples:
        >>> pluralize('egg')
        'eggs'
        >>> pluralize('pinch')
        'pinches'
    """
    lower = word.lower()
    if lower in IRREGULAR_PLURALS:
        return _match_case(word, IRREGULAR_PLURALS[lower])
    if lower in IRREGULAR_SINGULARS or lower in UNCOUNTABLE_INGREDIENTS:
        return word
    if lower.endswith("y") and len(lower) > 1 and lower[-2] not in "aeiou":
        return word[:-1] + _suffix(word, "ies")
    if lower.endswith(_ES_ENDINGS):
        return word + _suffix(word, "es")
    return word + _suffix(word, "s")


def is_plural(word: str) -> bool:
    return singularize(word).lower() != word.lower()
