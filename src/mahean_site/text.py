"""Text helpers: slugs, plain-text descriptions and part titles."""

import re
import unicodedata

DESCRIPTION_MAX_LENGTH = 180

# Bangla numerals ০-৯ -> Latin 0-9
BANGLA_DIGIT_TO_LATIN = {
    "০": "0",
    "১": "1",
    "২": "2",
    "৩": "3",
    "৪": "4",
    "৫": "5",
    "৬": "6",
    "৭": "7",
    "৮": "8",
    "৯": "9",
}
_DIGIT_TABLE = str.maketrans(BANGLA_DIGIT_TO_LATIN)

# "পর্ব ৩", "পর্ব 12"
LEGACY_BANGLA_PART_TITLE = re.compile(r"^পর্ব\s*([০-৯0-9]+)$")
# "Part 3", "part-03", "PART: 7"
ENGLISH_PART_TITLE = re.compile(r"^part\s*[-: ]*\s*([০-৯0-9]+)$", re.IGNORECASE)
NUMERIC_PART_TITLE = re.compile(r"^[০-৯0-9]+$")

_TAG_PATTERN = re.compile(r"<[^>]*>")
_WHITESPACE = re.compile(r"\s+")
_HYPHENS = re.compile(r"-+")


def normalize_unicode(value) -> str:
    """NFKC-normalize any value as a string (None -> "")."""
    return unicodedata.normalize("NFKC", str(value or ""))


def _keep_slug_char(char: str) -> bool:
    # Letters, numbers and combining marks; Bangla conjuncts rely on the marks
    return char == "-" or unicodedata.category(char)[0] in ("L", "N", "M")


def slugify(value) -> str:
    """
    Turn a title into a URL segment.

    Unicode letters/numbers/marks survive, so Bangla titles keep their
    script. The result never has leading, trailing or doubled hyphens and
    may be empty.
    """
    text = normalize_unicode(value).strip().lower()
    text = _WHITESPACE.sub("-", text)
    text = "".join(char for char in text if _keep_slug_char(char))
    text = _HYPHENS.sub("-", text)
    return text.strip("-")


def normalize_plain_text(value) -> str:
    """Strip HTML tags and collapse whitespace."""
    text = _TAG_PATTERN.sub(" ", str(value or ""))
    return _WHITESPACE.sub(" ", text).strip()


def truncate(value, max_length: int = DESCRIPTION_MAX_LENGTH) -> str:
    """Plain-text version of value, cut to max_length with a trailing '...'."""
    text = normalize_plain_text(value)
    if len(text) <= max_length:
        return text
    return text[:max(0, max_length - 3)].strip() + "..."


def to_latin_digits(value: str) -> str:
    """Replace Bangla numerals with Latin ones."""
    return value.translate(_DIGIT_TABLE)


def parse_part_number(title) -> int | None:
    """
    Extract the part number from titles like "পর্ব ৩", "Part 3" or "৩".

    Returns None for any other title, or for numbers below 1.
    """
    trimmed = normalize_unicode(title).strip()
    if not trimmed:
        return None

    match = LEGACY_BANGLA_PART_TITLE.match(trimmed) or ENGLISH_PART_TITLE.match(trimmed)
    if match:
        digits = match.group(1)
    elif NUMERIC_PART_TITLE.match(trimmed):
        digits = trimmed
    else:
        return None

    try:
        number = int(to_latin_digits(digits))
    except ValueError:
        return None
    return number if number >= 1 else None


def normalize_part_title(title, index: int) -> str:
    """
    Display label for a story part.

    Numbered titles become "Part 03"; other non-empty titles are kept
    verbatim; an empty title falls back to the 1-based position.
    """
    trimmed = normalize_unicode(title).strip()
    if not trimmed:
        return f"Part {index + 1:02d}"
    number = parse_part_number(trimmed)
    if number is None:
        return trimmed
    return f"Part {number:02d}"
