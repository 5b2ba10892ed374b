"""
Localized text decoders.

Two formats carry display names:

- UTF-16LE text tables (``export_units.txt``, ``expanded_bi.txt``)::

      ¬ comment
      {roman_hastati}Hastati
      {roman_hastati_descr}Early legion
      spearmen, second line

- ``.strings.bin`` binary tables used by the remastered game.

Both return a dict keyed by lower-cased tag.
"""

import struct
from typing import Dict, List, Tuple

from rtwroster.parser.errors import DecodeError
from rtwroster.parser.records import filter_lines

COMMENT = "¬"
STRINGS_BIN_MAGIC = 0x0800


def decode_utf16(data: bytes) -> str:
    text = data.decode("utf-16-le", errors="replace")
    return text.lstrip("\ufeff")


def parse_text(data, mode=None) -> Dict[str, str]:
    """
    Parse a ``{key}value`` text table.

    Args:
        data: Raw UTF-16LE bytes, or already decoded text
    """
    text = decode_utf16(data) if isinstance(data, (bytes, bytearray)) else data
    entries: List[Tuple[str, List[str]]] = []
    for line in filter_lines(text, comment_chars=COMMENT):
        if line.text.startswith("{"):
            end = line.text.find("}")
            if end < 0:
                raise DecodeError(f"failed parsing tag at line {line.number}: {line.text!r}")
            entries.append((line.text[1:end].lower(), [line.text[end + 1:]]))
        elif entries:
            entries[-1][1].append(line.text)
        else:
            raise DecodeError(f"text before first tag at line {line.number}: {line.text!r}")
    return {key: "\n".join(parts).strip() for key, parts in entries}


class ByteReader:
    """Little-endian cursor over a bytes buffer."""

    def __init__(self, data: bytes, what: str):
        self.data = data
        self.pos = 0
        self.what = what

    def unpack(self, fmt: str):
        size = struct.calcsize(fmt)
        if self.pos + size > len(self.data):
            raise DecodeError(f"unexpected end of {self.what} at offset {self.pos}")
        values = struct.unpack_from(fmt, self.data, self.pos)
        self.pos += size
        return values if len(values) > 1 else values[0]

    def read(self, size: int) -> bytes:
        if self.pos + size > len(self.data):
            raise DecodeError(f"unexpected end of {self.what} at offset {self.pos}")
        chunk = self.data[self.pos:self.pos + size]
        self.pos += size
        return chunk


def parse_strings_bin(data: bytes, mode=None) -> Dict[str, str]:
    """
    Parse a ``.strings.bin`` table.

    Layout: u16 type, u16 magic (0x0800), u32 count, then ``count`` pairs of
    strings, each a u16 length in UTF-16 code units followed by UTF-16LE data.
    """
    reader = ByteReader(data, "strings.bin")
    _type, magic, count = reader.unpack("<HHI")
    if magic != STRINGS_BIN_MAGIC:
        raise DecodeError(f"invalid strings.bin file (magic {magic:#06x})")

    def read_string() -> str:
        length = reader.unpack("<H")
        return reader.read(2 * length).decode("utf-16-le", errors="replace")

    table = {}
    for _ in range(count):
        key = read_string().lower()
        table[key] = read_string()
    return table
