"""
Sprite catalog decoder (``.sd`` files).

The catalog maps UI sprite keys to a rectangle on one of its page images.
"""

from dataclasses import dataclass
from typing import Dict

from rtwroster.parser.errors import DecodeError
from rtwroster.parser.text import ByteReader

SD_MAGIC = 6


@dataclass
class Sprite:
    file: str
    left: int
    right: int
    top: int
    bottom: int


def _read_string(reader: ByteReader, nul_terminated: bool) -> str:
    length = reader.unpack("<I")
    raw = reader.read(length)
    if nul_terminated and reader.read(1) != b"\x00":
        raise DecodeError("missing null terminator in string")
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise DecodeError(f"invalid string at offset {reader.pos - length}") from e


def parse_sprites(data: bytes, mode=None) -> Dict[str, Sprite]:
    reader = ByteReader(data, ".sd file")
    magic, page_count, entry_count = reader.unpack("<III")
    if magic != SD_MAGIC:
        raise DecodeError("invalid .sd file")

    pages = []
    for _ in range(page_count):
        pages.append(_read_string(reader, nul_terminated=True))
        _width, _height, mask_length = reader.unpack("<III")
        reader.read(mask_length)

    sprites = {}
    for _ in range(entry_count):
        key = _read_string(reader, nul_terminated=False)
        page, left, right, top, bottom = reader.unpack("<HHHHH")
        _alpha, _cursor, _x, _y = reader.unpack("<BBHH")
        if page >= len(pages):
            raise DecodeError(f"sprite {key!r} refers to missing page {page}")
        sprites[key] = Sprite(pages[page], left, right, top, bottom)
    return sprites
