"""Heuristic extraction of named fields from free-text model responses.

The vision model answers in loosely formatted prose, so fields are pulled
out with layered regex patterns rather than a real parser. Results are
deterministic for a given input: keys are tried in the order given, and for
each key the pattern families below are tried in order.
"""

from __future__ import annotations

import re

from .models import NOT_AVAILABLE, UNKNOWN_PRODUCT, NutritionalInfo

_STRUCTURED_TEMPLATES: list[tuple[str, int]] = [
    (r"{k}\s*:\s*([^\n]+)", re.I),
    (r"{k}\s*-\s*([^\n]+)", re.I),
    (r"{k}\s*=\s*([^\n]+)", re.I),
    (r"{k}\s*content\s*:\s*([^\n]+)", re.I),
    (r"{k}\s*information\s*:\s*([^\n]+)", re.I),
    (r"\*\*{k}\*\*\s*:\s*([^\n]+)", re.I),
    (r"<{k}>([^<]+)</{k}>", re.I),
    (r"^\s*{k}\s*:\s*([^\n]+)", re.I | re.M),
    (r"\|\s*{k}\s*\|\s*([^|\n]+)\s*\|", re.I),
]

_BULLET_TEMPLATES: list[tuple[str, int]] = [
    (r"[•\-*\d+.]+\s*{k}\s*:?\s*([^\n]+)", re.I),
    (r"[•\-*]\s*{k}\s*:\s*([^\n]+)", re.I),
    (r"\d+\.\s*{k}\s*:\s*([^\n]+)", re.I),
]

_NUMBER_WITH_UNIT = [
    re.compile(r"(\d+(?:\.\d+)?\s*(?:g|mg|kcal|calories|cal)(?:/serving)?)", re.I),
    re.compile(r"(\d+(?:\.\d+)?\s*(?:grams|gram|milligrams|milligram))", re.I),
    re.compile(r"(\d+(?:\.\d+)?\s*(?:%|percent))", re.I),
]

_SENTENCE_SPLIT = re.compile(r"\.(?:\s+|\n)")
_MAX_SENTENCE_LEN = 100


def _compile(templates: list[tuple[str, int]], key: str) -> list[re.Pattern[str]]:
    k = re.escape(key)
    return [re.compile(t.replace("{k}", k), flags) for t, flags in templates]


def _first_capture(text: str, patterns: list[re.Pattern[str]]) -> str | None:
    for pattern in patterns:
        m = pattern.search(text)
        if m and m.group(1).strip():
            return m.group(1).strip()
    return None


def _scan_sentences(text: str, key: str) -> str | None:
    needle = key.lower()
    if needle not in text.lower():
        return None
    for sentence in _SENTENCE_SPLIT.split(text):
        if needle not in sentence.lower():
            continue
        for pattern in _NUMBER_WITH_UNIT:
            m = pattern.search(sentence)
            if m and m.group(0):
                return m.group(0).strip()
        if len(sentence) < _MAX_SENTENCE_LEN:
            return sentence.strip()
    return None


def extract(text: str, primary_key: str, *alternate_keys: str) -> str | None:
    """Extract the value for ``primary_key`` (or an alternate) from ``text``.

    For each key: structural patterns ("Key: v", "**Key**: v", "<Key>v</Key>",
    table rows, ...), then bullet and numbered-list patterns, then a scan of
    sentences mentioning the key for a number with a unit.

    Returns:
        The trimmed value, or None when no key matched. Values are returned
        verbatim; units are not normalized.
    """
    for key in (primary_key, *alternate_keys):
        value = _first_capture(text, _compile(_STRUCTURED_TEMPLATES, key))
        if value is None:
            value = _first_capture(text, _compile(_BULLET_TEMPLATES, key))
        if value is None:
            value = _scan_sentences(text, key)
        if value is not None:
            return value
    return None


# Product name

_NAME_PATTERNS = [
    re.compile(r"Product(?:\s?Name)?:\s*([^\n]+)", re.I),
    re.compile(r"This is (?:a|an)\s+([^\n.,]+)", re.I),
    re.compile(r"I can see (?:a|an)\s+([^\n.,]+)", re.I),
    re.compile(r"The image shows (?:a|an)\s+([^\n.,]+)", re.I),
    re.compile(r"This (?:is|appears to be) (?:a|an)\s+([^\n.,]+)", re.I),
    re.compile(
        r"([A-Z][A-Za-z0-9 ]+ (?:cereal|chips|snacks|drink|beverage|food|product))"
    ),
]


def extract_product_name(text: str) -> str:
    """Best-effort product name; ``UNKNOWN_PRODUCT`` when nothing fits."""
    name = extract(text, "product name", "product", "name", "brand")
    if name:
        return name

    name = _first_capture(text, _NAME_PATTERNS)
    if name:
        return name

    # Last resort: the first sentence, if it says anything at all
    first_sentence = re.split(r"[.!?]", text)[0]
    if len(first_sentence) > 10:
        return first_sentence.strip()
    return UNKNOWN_PRODUCT


# Description

_DESCRIPTION_PATTERNS = [
    re.compile(
        r"Description:[\s\n]+([\s\S]+?)(?=\n\n|\n[A-Z]|Nutritional Information:|$)",
        re.I,
    ),
    re.compile(
        r"This product is ([\s\S]+?)(?=\n\n|\n[A-Z]|Nutritional Information:|$)",
        re.I,
    ),
    re.compile(
        r"([\s\S]+?)(?=\nNutritional Information:|Nutrition Facts:|Calories:|$)",
        re.I,
    ),
]

_NUTRITION_WORDS = ("calorie", "nutrition", "protein", "fat", "carb")


def extract_description(text: str) -> str:
    """Best-effort product description; falls back to the whole text."""
    description = extract(
        text, "description", "product description", "about this product", "overview"
    )
    if description:
        return description

    for pattern in _DESCRIPTION_PATTERNS:
        m = pattern.search(text)
        if m and m.group(1).strip() and len(m.group(1)) > 20:
            return m.group(1).strip()

    # Paragraph that isn't obviously nutrition facts
    for paragraph in re.split(r"\n\s*\n", text):
        lowered = paragraph.lower()
        if len(paragraph) > 40 and not any(w in lowered for w in _NUTRITION_WORDS):
            return paragraph.strip()

    return text


# Nutrition

_NUTRITION_KEYS: dict[str, tuple[str, ...]] = {
    "calories": ("calories", "caloric content", "energy"),
    "fats": ("fats", "fat", "fat content", "total fat"),
    "carbs": ("carbohydrates", "carbs", "carb", "total carbohydrates"),
    "proteins": ("proteins", "protein", "protein content"),
}


def extract_nutrition(text: str) -> NutritionalInfo:
    """Extract the four nutrition fields; misses become ``NOT_AVAILABLE``."""
    values = {
        field_name: extract(text, *keys) or NOT_AVAILABLE
        for field_name, keys in _NUTRITION_KEYS.items()
    }
    return NutritionalInfo(**values)
