"""Campaign script decoder (descr_strat.txt): faction order only."""

from typing import Dict

from rtwroster.parser.records import filter_lines

SECTION_STARTS = ("playable", "unlockable", "nonplayable")


def parse_strat(text: str, mode=None) -> Dict[str, int]:
    """
    Map each faction listed in the playable, unlockable and nonplayable
    sections to its position in the campaign order.
    """
    order: Dict[str, int] = {}
    collecting = False
    for line in filter_lines(text):
        if line.text.startswith(SECTION_STARTS):
            collecting = True
        elif line.text == "end":
            collecting = False
        elif collecting:
            order.setdefault(line.text, len(order))
    return order
