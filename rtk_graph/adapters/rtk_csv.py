#!/usr/bin/env python3
"""
rtk_csv.py

Parse the Heisig RTK index CSV files into typed records.

Two datasets are supported:
- kanji:      kanji,id_5th_ed,id_6th_ed,keyword_5th_ed,keyword_6th_ed,
              components,on_reading,kun_reading
- primitives: old_path,parent_frame,unicode,next_frame,real_heisig

The parsers are tolerant of short rows but reject rows that lack their key
field. Errors carry the 1-based line number (counted over non-blank lines,
header included).
"""

import re
from dataclasses import dataclass
from typing import Callable, Optional, TypeVar

from ..lib.errors import RTKParseError

KANJI_FIELD_COUNT = 8
KANJI_HEADER_MARKER = "kanji"
PRIMITIVES_HEADER_MARKER = "old_path"

NULL_VALUES = {"NULL", "null"}
TRUE_VALUES = {"true", "1", "yes"}

# ASCII only: other Unicode digits are not numbers here
_LEADING_INTEGER = re.compile(r"[+-]?[0-9]+")

T = TypeVar("T")


@dataclass(frozen=True)
class KanjiRecord:
    """One row of the kanji index."""
    kanji: str
    id_5th: Optional[int] = None
    id_6th: Optional[int] = None
    keyword_5th: str = ""
    keyword_6th: str = ""
    components: str = ""              # ;-separated mnemonic keywords
    on_reading: str = ""
    kun_reading: str = ""


@dataclass(frozen=True)
class PrimitiveRecord:
    """One row of the primitives index."""
    old_path: str                     # e.g. "primitives/p12-elbow.svg"
    parent_frame: Optional[int] = None
    unicode: Optional[str] = None
    next_frame: Optional[int] = None
    real_heisig: Optional[bool] = None


# ---------------------------------------------------------------------------
# Field Parsing
# ---------------------------------------------------------------------------

def parse_csv_line(line: str, delimiter: str = ",") -> list[str]:
    """
    Split one CSV line into trimmed fields.

    The delimiter is ignored inside double-quoted segments, and a doubled
    quote inside a quoted segment is an escaped quote character.
    """
    fields: list[str] = []
    current: list[str] = []
    in_quotes = False
    i = 0

    while i < len(line):
        char = line[i]

        if char == '"':
            if in_quotes and line[i + 1:i + 2] == '"':
                current.append('"')
                i += 2
                continue
            in_quotes = not in_quotes
        elif char == delimiter and not in_quotes:
            fields.append("".join(current).strip())
            current = []
        else:
            current.append(char)
        i += 1

    fields.append("".join(current).strip())
    return fields


def parse_optional_number(value: str) -> Optional[int]:
    """
    Parse an integer field, treating blank and NULL as unset.

    Like a lenient integer parse, leading digits win ("12a" -> 12) and a
    value with no leading digits is unset.
    """
    trimmed = value.strip()
    if not trimmed or trimmed in NULL_VALUES:
        return None

    match = _LEADING_INTEGER.match(trimmed)
    if match is None:
        return None
    return int(match.group(0))


def parse_boolean(value: str) -> bool:
    """Parse a boolean field; only true/1/yes (any case) are truthy."""
    return value.strip().lower() in TRUE_VALUES


# ---------------------------------------------------------------------------
# Line Handling
# ---------------------------------------------------------------------------

def _split_lines(csv_text: str) -> list[str]:
    lines = [line.strip() for line in csv_text.split("\n")]
    lines = [line for line in lines if line]
    if not lines:
        raise RTKParseError("CSV file is empty")
    return lines


def _parse_rows(
    csv_text: str,
    header_marker: str,
    parse_row: Callable[[list[str], int], T],
) -> list[T]:
    lines = _split_lines(csv_text)
    start_index = 1 if header_marker in lines[0].lower() else 0

    records: list[T] = []
    for index in range(start_index, len(lines)):
        line_number = index + 1
        try:
            fields = parse_csv_line(lines[index])
            records.append(parse_row(fields, line_number))
        except RTKParseError:
            raise
        except Exception as e:
            raise RTKParseError(
                f"Error parsing line {line_number}: {e}", line_number
            ) from e

    return records


# ---------------------------------------------------------------------------
# Kanji
# ---------------------------------------------------------------------------

def _kanji_row(fields: list[str], line_number: int) -> KanjiRecord:
    # Pad short rows; required fields are still validated afterwards
    fields = fields + [""] * (KANJI_FIELD_COUNT - len(fields))

    record = KanjiRecord(
        kanji=fields[0],
        id_5th=parse_optional_number(fields[1]),
        id_6th=parse_optional_number(fields[2]),
        keyword_5th=fields[3],
        keyword_6th=fields[4],
        components=fields[5],
        on_reading=fields[6],
        kun_reading=fields[7],
    )

    if not record.kanji:
        raise RTKParseError(f"Missing kanji character at line {line_number}", line_number)
    if not record.keyword_5th and not record.keyword_6th:
        raise RTKParseError(f"Missing keywords at line {line_number}", line_number)

    return record


def parse_kanji_csv(csv_text: str) -> list[KanjiRecord]:
    """
    Parse the kanji index CSV.

    Args:
        csv_text: Raw CSV text content

    Returns:
        List of KanjiRecord objects in file order

    Raises:
        RTKParseError: on empty input or a row missing its kanji or keywords
    """
    return _parse_rows(csv_text, KANJI_HEADER_MARKER, _kanji_row)


# ---------------------------------------------------------------------------
# Primitives
# ---------------------------------------------------------------------------

def _field(fields: list[str], index: int) -> Optional[str]:
    """Return a trailing field, or None when the row is too short."""
    if index < len(fields):
        return fields[index]
    return None


def _primitive_row(fields: list[str], line_number: int) -> PrimitiveRecord:
    old_path = fields[0]
    if not old_path:
        raise RTKParseError(f"Missing old_path at line {line_number}", line_number)

    parent_frame = _field(fields, 1)
    unicode = _field(fields, 2)
    next_frame = _field(fields, 3)
    real_heisig = _field(fields, 4)

    return PrimitiveRecord(
        old_path=old_path,
        parent_frame=parse_optional_number(parent_frame) if parent_frame is not None else None,
        unicode=unicode or None,
        next_frame=parse_optional_number(next_frame) if next_frame is not None else None,
        real_heisig=parse_boolean(real_heisig) if real_heisig else None,
    )


def parse_primitives_csv(csv_text: str) -> list[PrimitiveRecord]:
    """
    Parse the primitives index CSV.

    Args:
        csv_text: Raw CSV text content

    Returns:
        List of PrimitiveRecord objects in file order

    Raises:
        RTKParseError: on empty input or a row with an empty asset path
    """
    return _parse_rows(csv_text, PRIMITIVES_HEADER_MARKER, _primitive_row)
