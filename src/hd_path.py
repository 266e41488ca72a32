"""Derivation path parsing: m/44'/0'/0'/0"""

import re
from typing import Iterable, List, Tuple

from hd_errors import InvalidIndex, MalformedPath

_SEGMENT_RE = re.compile(r"[0-9]+'?")

# 2**31 - 1 has 10 digits
MAX_INDEX_DIGITS = 10

PathStep = Tuple[int, bool]


def parse_path(path: str) -> List[PathStep]:
    """
    Split a path into (index, hardened) steps.

    The path must start with "m"; every later segment is a decimal index
    optionally followed by "'". Case-insensitive, surrounding "/" ignored.
    Indices with more than MAX_INDEX_DIGITS significant digits raise
    InvalidIndex; the exact range is checked at derivation.
    """
    if not isinstance(path, str):
        raise MalformedPath(f"Derivation path must be a string, got {type(path).__name__}")
    parts = path.strip().lower().strip("/").split("/")
    if parts[0] != "m":
        raise MalformedPath('Derivation path must start with "m"')

    steps = []
    for part in parts[1:]:
        if not _SEGMENT_RE.fullmatch(part):
            raise MalformedPath(f"Invalid index in derivation path: {part!r}")
        hardened = part.endswith("'")
        digits = part.rstrip("'").lstrip("0") or "0"
        if len(digits) > MAX_INDEX_DIGITS:
            raise InvalidIndex(f"Index in derivation path is too large: {digits[:16]}...")
        steps.append((int(digits), hardened))
    return steps


def format_step(index: int, hardened: bool) -> str:
    return f"{index}'" if hardened else str(index)


def format_path(steps: Iterable[PathStep]) -> str:
    return "/".join(["m"] + [format_step(i, h) for i, h in steps])
