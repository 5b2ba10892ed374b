"""Mount table decoder (descr_mount.txt)."""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

from rtwroster.parser.fields import FieldReader
from rtwroster.parser.records import Record, extract_records


class MountClass(Enum):
    HORSE = "horse"
    CAMEL = "camel"
    ELEPHANT = "elephant"
    CHARIOT = "chariot"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, token: str) -> "MountClass":
        try:
            return cls(token)
        except ValueError:
            return cls.UNKNOWN


@dataclass
class Mount:
    id: str
    mount_class: MountClass
    model: Optional[str] = None
    horse: Optional[str] = None


def decode_mount(record: Record) -> Mount:
    reader = FieldReader(record)
    return Mount(
        id=reader.require("type"),
        mount_class=MountClass.parse(reader.require("class")),
        model=reader.get("model"),
        horse=reader.get("horse_type"),
    )


def parse_mounts(text: str, mode=None) -> Dict[str, Mount]:
    """Mounts keyed by id."""
    mounts = {}
    for record in extract_records(text, ("type",)):
        mount = decode_mount(record)
        mounts[mount.id] = mount
    return mounts
