#!/usr/bin/env python3
"""
Skiller Pro+ command protocol — enums, byte tables, and frame builders.

Every command is a single 8-byte HID feature report (report ID 7) sent with
a SET_REPORT control transfer.  Byte 0 is therefore always 0x07; byte 1
selects the command.

Frame layout::

    offset  0     1        2          3              4     5     6      7
            0x07  command  profile    level / flag   0x04  0x00  color  0x00   (0x0a)
            0x07  command  profile/rate  0x00        zero-filled              (others)

Pure functions only; no USB I/O happens here.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union

# =========================================================================
# Constants
# =========================================================================

FRAME_SIZE = 8
FRAME_HEADER = 0x07  # feature report ID

CMD_POLLING_RATE = 0x01
CMD_PROFILE = 0x02
CMD_LIGHTING = 0x0a
CMD_WIN_KEY = 0x0b

# Bytes 4-7 of a lighting frame: [0x04, 0x00, color, 0x00]
LIGHTING_MARKER = 0x04

# Level byte used by the plain "set color" command
COLOR_ONLY_LEVEL = 0x0a

# Level sentinels for animated modes
PULSATING_LEVEL = 11
CYCLE_LEVEL = 12


# =========================================================================
# Settings
# =========================================================================

class Color(Enum):
    """LED colors supported by the keyboard firmware."""
    RED = "red"
    GREEN = "green"
    BLUE = "blue"
    PURPLE = "purple"
    CYAN = "cyan"
    YELLOW = "yellow"
    WHITE = "white"


class Profile(Enum):
    """One of the three on-board profiles."""
    P1 = "p1"
    P2 = "p2"
    P3 = "p3"


class PollingRate(Enum):
    """Valid USB polling rates."""
    HZ125 = 125
    HZ250 = 250
    HZ500 = 500
    HZ1000 = 1000


COLOR_CODES = {
    Color.RED: 0,
    Color.GREEN: 1,
    Color.BLUE: 2,
    Color.PURPLE: 3,
    Color.CYAN: 4,
    Color.YELLOW: 5,
    Color.WHITE: 6,
}

PROFILE_CODES = {
    Profile.P1: 1,
    Profile.P2: 2,
    Profile.P3: 3,
}

# Protocol-defined; not monotonic with frequency
POLLING_RATE_CODES = {
    PollingRate.HZ125: 8,
    PollingRate.HZ250: 4,
    PollingRate.HZ500: 2,
    PollingRate.HZ1000: 1,
}


@dataclass(frozen=True)
class Static:
    """A static color at the given brightness level."""
    level: int
    color: Color

    def __post_init__(self):
        if isinstance(self.level, bool) or not isinstance(self.level, int):
            raise TypeError(f"Brightness level must be an int, got {self.level!r}")
        if not 0 <= self.level <= 0xFF:
            raise ValueError(f"Brightness level must fit in one byte, got {self.level}")


@dataclass(frozen=True)
class Pulsating:
    """A single color pulsating."""
    color: Color


@dataclass(frozen=True)
class Cycle:
    """All colors pulsating in a cycle."""


Brightness = Union[Static, Pulsating, Cycle]


# =========================================================================
# Encoding
# =========================================================================

def to_skiller_byte(value) -> int:
    """Map a setting to its single-byte protocol code.

    Booleans are inverted (True → 0, False → 1), which is how the firmware
    encodes the Windows-key flag.

    Raises:
        TypeError: If *value* has no protocol encoding.
    """
    # bool first: it is not one of the enums but must not fall through
    if isinstance(value, bool):
        return 0 if value else 1
    if isinstance(value, Color):
        return COLOR_CODES[value]
    if isinstance(value, Profile):
        return PROFILE_CODES[value]
    if isinstance(value, PollingRate):
        return POLLING_RATE_CODES[value]
    raise TypeError(f"Cannot encode {value!r} for the Skiller protocol")


def build_frame(command: int, arg: int, value: int = 0, tail: bytes = b"") -> bytes:
    """Assemble an 8-byte frame: header, command, arg, value, then *tail*.

    The remainder is zero-filled.
    """
    body = bytes([FRAME_HEADER, command, arg, value]) + bytes(tail)
    if len(body) > FRAME_SIZE:
        raise ValueError(f"Frame body too long ({len(body)} > {FRAME_SIZE})")
    return body.ljust(FRAME_SIZE, b'\x00')


def _lighting_frame(profile: Profile, level: int, color_code: int) -> bytes:
    return build_frame(
        CMD_LIGHTING,
        to_skiller_byte(profile),
        level,
        bytes([LIGHTING_MARKER, 0x00, color_code]),
    )


def switch_profile_frame(profile: Profile) -> bytes:
    """``[7, 2, profile, 0, 0, 0, 0, 0]``"""
    return build_frame(CMD_PROFILE, to_skiller_byte(profile))


def color_frame(color: Color, profile: Profile) -> bytes:
    """``[7, 10, profile, 10, 4, 0, color, 0]``"""
    return _lighting_frame(profile, COLOR_ONLY_LEVEL, to_skiller_byte(color))


def brightness_frame(brightness: Brightness, profile: Profile) -> bytes:
    """Build the lighting frame for a brightness mode.

    Level byte is ``Static.level``, 11 for Pulsating and 12 for Cycle.
    Cycle carries color byte 0, which the firmware ignores.
    """
    if isinstance(brightness, Static):
        return _lighting_frame(profile, brightness.level, to_skiller_byte(brightness.color))
    if isinstance(brightness, Pulsating):
        return _lighting_frame(profile, PULSATING_LEVEL, to_skiller_byte(brightness.color))
    if isinstance(brightness, Cycle):
        return _lighting_frame(profile, CYCLE_LEVEL, 0)
    raise TypeError(f"Unknown brightness mode: {brightness!r}")


def polling_rate_frame(rate: PollingRate) -> bytes:
    """``[7, 1, rate, 0, 0, 0, 0, 0]``"""
    return build_frame(CMD_POLLING_RATE, to_skiller_byte(rate))


def win_key_frame(enabled: bool, profile: Profile) -> bytes:
    """``[7, 11, profile, flag, 0, 0, 0, 0]`` with flag 0 = enabled.

    *enabled* must be a real bool; anything else raises TypeError.
    """
    return build_frame(CMD_WIN_KEY, to_skiller_byte(profile), to_skiller_byte(enabled))


def is_valid_frame(frame: bytes) -> bool:
    """Check the size and report ID of an outgoing frame."""
    return len(frame) == FRAME_SIZE and frame[0] == FRAME_HEADER
