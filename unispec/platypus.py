"""Mascot artwork and the expressions it can show in the browser."""

from __future__ import annotations

from enum import Enum

FRAMES_PER_STATE = 4
FRAME_HEIGHT = 7


class PlatypusState(Enum):
    """Expressions of the mascot; the value is the index into the frame table."""

    IDLE = 0
    HAPPY = 1
    SAD = 2
    LOVE = 3
    SEARCHING = 4
    WORKING = 5
    CELEBRATING = 6


_BLANK = "\u2800"
_INDENT = "    "

# Each row is a sequence of drawn runs (strings) and blank runs (counts of
# empty braille cells), read left to right.
_ROWS: tuple[tuple[int | str, ...], ...] = (
    (11, "⣴⠶⠶⣒⣛⡚⠛⠛⠛⠋⠛⠛⠒⠚⠒⠒⠒⠒⠦⠤⢤⣤", 14),
    (6, "⢸⢠⠞⠉⣴⣿⢳", 15, "⢹", 18),
    (6, "⣾⣄⠓⠤⠬⠥⠚", 15, "⢸⡀", 6, "⣀⣠⠤", 1, "⠤⣄⣀", 4),
    (2, "⢀⣀⣠⣴⡇⠈⠳⣄", 13, "⢀⣠⠔", 2, "⣽⠓⠒⠒⠖⡒⠉⠉", 1, "⠠⣀", 2, "⠘⡎⠉⠲⣄", 1),
    (
        "⢠⠞⠋⠉⢉⣉⡁", 3, "⠉⢲", 1, "⢄", 9, "⡴⠋", 3, "⡏", 1, "⠦⡀", 1,
        "⢨⠑⠢⣄", 2, "⠉⠓⠢⢼⣀⣠⣤⠇",
    ),
    ("⠈⠙⠛⠋⠉⠉⠉⠓⠒⠒⢲⠟⣠⠾⡆", 1, "⡾⠒⠒⠛⠛⠒⠒⠛⢦⣀⢀⡮⡟⠉⠙" + "⠒" * 10 + "⠚⠋⠉⠁", 3),
    (10, "⠘⠶⠃⠠⠷⠿⠁", 8, "⠘⠶⠽⠇", 3),
)


def _render_row(row: tuple[int | str, ...]) -> str:
    return _INDENT + "".join(
        _BLANK * part if isinstance(part, int) else part for part in row
    )


def _render_art(rows: tuple[tuple[int | str, ...], ...]) -> str:
    return "\n" + "\n".join(_render_row(row) for row in rows) + "\n"


# Every expression currently shares one drawing; each state still carries a
# full walk cycle (left stand, left step, right stand, right step) so the
# designs can diverge without touching the lookup.
_BASE_ART = _render_art(_ROWS)

PLATYPUS_FRAMES: dict[PlatypusState, tuple[str, ...]] = {
    state: (_BASE_ART,) * FRAMES_PER_STATE for state in PlatypusState
}


def platypus_frame(state: PlatypusState | int, step: int) -> str:
    """Return the drawing for ``state`` at animation ``step`` (cycling every four)."""
    state = PlatypusState(state)
    if step < 0:
        raise ValueError(f"animation step must not be negative: {step}")
    return PLATYPUS_FRAMES[state][step % FRAMES_PER_STATE]