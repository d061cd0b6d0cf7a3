"""Asset ID range codec: range strings <-> sorted integer ID lists.

Accepted input, comma separated:
  "125"                          single ID
  "112-123"                      inclusive range (start <= end, else dropped)
  "Admin/WS/F-5/112-123"         anything before the last "/" is ignored
  "Admin/WS/F-5/001 to Admin/WS/F-5/098"
                                 legacy "to" form, whole string or per token

Malformed tokens are dropped rather than reported.
"""

import re
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple

from config.defaults import (
    ASSET_ID_PREFIX, ASSET_ID_PAD_WIDTH,
    RANGE_SEPARATOR, FORMATTED_RANGE_JOINER,
)

_DIGITS = re.compile(r"\d+")
_TO_SPLIT = re.compile(r"\s+to\s+", re.IGNORECASE)
_FLOOR_NUMBER = re.compile(r"(\d+)(st|nd|rd|th)?", re.IGNORECASE)
_PADDED_SEGMENT = re.compile(r"/(\d+)\s*$")


@dataclass
class RangeParseResult:
    valid: bool
    ids: List[int] = field(default_factory=list)
    count: int = 0
    reason: str = ""


def _to_int(text: str) -> Optional[int]:
    text = text.strip()
    if _DIGITS.fullmatch(text):
        return int(text)
    return None


def _last_segment(text: str) -> str:
    return text.split("/")[-1].strip()


def _parse_to_form(text: str) -> Optional[Tuple[int, int]]:
    """"<prefix>/<A> to <prefix>/<B>" -> (A, B), or None if it is not that form."""
    parts = _TO_SPLIT.split(text.strip())
    if len(parts) != 2:
        return None
    start = _to_int(_last_segment(parts[0]))
    end = _to_int(_last_segment(parts[1]))
    if start is None or end is None or start > end:
        return None
    return start, end


def _parse_token(token: str) -> List[int]:
    token = token.strip()
    if not token:
        return []

    if _TO_SPLIT.search(token):
        bounds = _parse_to_form(token)
        return list(range(bounds[0], bounds[1] + 1)) if bounds else []

    number_part = _last_segment(token)
    if "-" in number_part:
        pieces = number_part.split("-")
        if len(pieces) != 2:
            return []
        start, end = _to_int(pieces[0]), _to_int(pieces[1])
        if start is None or end is None or start > end:
            return []
        return list(range(start, end + 1))

    value = _to_int(number_part)
    return [value] if value is not None else []


def parse_asset_ids(text: Optional[str]) -> List[int]:
    """Parse a range string into a sorted, de-duplicated list of asset IDs."""
    if not text or not text.strip():
        return []

    ids = set()
    for token in text.split(","):
        ids.update(_parse_token(token))
    return sorted(ids)


def validate_range_string(text: Optional[str]) -> RangeParseResult:
    """Parse and report. Only a blank string is invalid; bad tokens are just dropped."""
    if not text or not text.strip():
        return RangeParseResult(valid=False, reason="Please enter an asset ID range")
    ids = parse_asset_ids(text)
    return RangeParseResult(valid=True, ids=ids, count=len(ids))


def merge_runs(ids: Iterable[int]) -> List[Tuple[int, int]]:
    """Merge consecutive IDs into (start, end) runs."""
    ordered = sorted(set(ids))
    if not ordered:
        return []
    runs = []
    start = end = ordered[0]
    for value in ordered[1:]:
        if value == end + 1:
            end = value
        else:
            runs.append((start, end))
            start = end = value
    runs.append((start, end))
    return runs


def to_compact_string(ids: Iterable[int]) -> str:
    """{7, 8, 9, 11} -> "7-9, 11"."""
    parts = []
    for start, end in merge_runs(ids):
        parts.append(str(start) if start == end else f"{start}-{end}")
    return RANGE_SEPARATOR.join(parts)


def format_asset_id(value: int, floor_number: str, prefix: str = ASSET_ID_PREFIX) -> str:
    return f"{prefix}/F-{floor_number}/{value:0{ASSET_ID_PAD_WIDTH}d}"


def to_formatted_display(ids: Iterable[int], floor_number: str, prefix: str = ASSET_ID_PREFIX) -> str:
    """Render runs with the full display template, e.g. "Admin/WS/F-9/001 to Admin/WS/F-9/010"."""
    parts = []
    for start, end in merge_runs(ids):
        if start == end:
            parts.append(format_asset_id(start, floor_number, prefix))
        else:
            parts.append(
                format_asset_id(start, floor_number, prefix)
                + FORMATTED_RANGE_JOINER
                + format_asset_id(end, floor_number, prefix)
            )
    return RANGE_SEPARATOR.join(parts)


def _trailing_number(text: str) -> Optional[int]:
    match = _PADDED_SEGMENT.search(text)
    if match:
        return int(match.group(1))
    return _to_int(text)


def strip_formatted_display(text: Optional[str]) -> str:
    """Drop the display template: "Admin/WS/F-9/001 to Admin/WS/F-9/005, Admin/WS/F-9/009" -> "1-5, 9"."""
    if not text:
        return ""
    parts = []
    for token in text.split(","):
        ends = [_trailing_number(side) for side in _TO_SPLIT.split(token.strip())]
        ends = [e for e in ends if e is not None]
        if len(ends) == 1:
            parts.append(str(ends[0]))
        elif len(ends) == 2 and ends[0] <= ends[1]:
            parts.append(str(ends[0]) if ends[0] == ends[1] else f"{ends[0]}-{ends[1]}")
    return RANGE_SEPARATOR.join(parts)


def extract_floor_number(floor_name: str) -> str:
    """"9th Floor" -> "9"; names without digits are returned unchanged."""
    match = _FLOOR_NUMBER.search(floor_name or "")
    return match.group(1) if match else floor_name
