"""
Repair Bangla text that was double-encoded.

The corruption this handles: text stored as UTF-8, later decoded as
Latin-1 (or its Windows-1252 superset) and saved again as UTF-8. A
Bangla letter such as আ (E0 A6 86) then shows up as "à¦†". Reversing it
means turning every character back into the byte it came from and
decoding those bytes as UTF-8.

This is a heuristic tied to that one corruption mode. It is not a
general-purpose mojibake fixer.
"""

import logging
import re
from typing import Any

logger = logging.getLogger(__name__)

MAX_DECODE_ATTEMPTS = 2

# Fast-path detection: a string is a repair candidate only if one of these appears
MOJIBAKE_MARKERS = ("à¦", "à§", "Ã", "Â", "â€", "â€™", "â€œ", "â€�")

# Scoring also counts stray replacement characters as noise
_CANDIDATE_PATTERN = re.compile("|".join(re.escape(m) for m in MOJIBAKE_MARKERS))
_NOISE_PATTERN = re.compile("|".join(re.escape(m) for m in MOJIBAKE_MARKERS + ("�",)))
_BANGLA_PATTERN = re.compile("[ঀ-৿]")


def is_repair_candidate(text: str) -> bool:
    """True if the text contains any known mojibake marker."""
    return bool(text) and _CANDIDATE_PATTERN.search(text) is not None


def score_bangla(text: str) -> int:
    """Count Bangla codepoints (U+0980-U+09FF)."""
    return len(_BANGLA_PATTERN.findall(text))


def score_mojibake(text: str) -> int:
    """Count mojibake marker occurrences, including U+FFFD."""
    return len(_NOISE_PATTERN.findall(text))


def is_improvement(previous: str, candidate: str) -> bool:
    """
    Decide whether a decode attempt made forward progress.

    Accepted only if the candidate has strictly more Bangla codepoints
    or strictly fewer mojibake markers than the previous version.
    """
    if score_bangla(candidate) > score_bangla(previous):
        return True
    return score_mojibake(candidate) < score_mojibake(previous)


def _original_bytes(text: str) -> bytes:
    """
    Recover the bytes a Latin-1/cp1252 decoder turned into this text.

    Raises UnicodeEncodeError for characters no single byte maps to.
    """
    out = bytearray()
    for char in text:
        code = ord(char)
        if code <= 0xFF:
            out.append(code)
        else:
            # cp1252 puts printable characters (€, †, ™ ...) in 0x80-0x9F
            out.extend(char.encode("cp1252"))
    return bytes(out)


def decode_latin1_as_utf8(text: str) -> str | None:
    """Reinterpret text as Latin-1 bytes decoded as UTF-8, or None on failure."""
    try:
        return _original_bytes(text).decode("utf-8")
    except (UnicodeEncodeError, UnicodeDecodeError):
        return None


def repair_text(text: str) -> str:
    """
    Undo UTF-8-read-as-Latin-1 corruption in a single string.

    At most MAX_DECODE_ATTEMPTS passes are made; each one is kept only
    if is_improvement() agrees. Never raises.
    """
    if not isinstance(text, str) or not is_repair_candidate(text):
        return text

    current = text
    for _ in range(MAX_DECODE_ATTEMPTS):
        decoded = decode_latin1_as_utf8(current)
        if not decoded or decoded == current:
            break
        if not is_improvement(current, decoded):
            break
        current = decoded

    return current


def repair_deep_with_count(value: Any) -> tuple[Any, int]:
    """
    Repair every string inside a JSON-like structure.

    Returns (repaired_value, number_of_strings_changed). Dict keys are
    left alone; numbers, booleans and None pass through.
    """
    if isinstance(value, str):
        repaired = repair_text(value)
        return repaired, int(repaired != value)

    if isinstance(value, list):
        changed = 0
        items = []
        for entry in value:
            repaired, count = repair_deep_with_count(entry)
            items.append(repaired)
            changed += count
        return items, changed

    if isinstance(value, dict):
        changed = 0
        mapping = {}
        for key, entry in value.items():
            repaired, count = repair_deep_with_count(entry)
            mapping[key] = repaired
            changed += count
        return mapping, changed

    return value, 0


def repair_deep(value: Any) -> Any:
    """Repair every string inside a JSON-like structure (same shape back)."""
    repaired, _ = repair_deep_with_count(value)
    return repaired
