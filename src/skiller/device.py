#!/usr/bin/env python3
"""
Device session for the Sharkoon Skiller Pro+ keyboard.

Usage::

    from skiller import SkillerProPlus, Color, Profile, Pulsating

    kb = SkillerProPlus.open(timeout_ms=2000)
    if kb is None:
        raise SystemExit("Keyboard not found")
    with kb:
        kb.set_color(Color.RED, Profile.P2)
        kb.set_brightness(Pulsating(Color.BLUE), Profile.P3)

Only the first keyboard found on the bus is managed; selecting between
several connected units is not supported.

A session is not thread-safe.  ``set_color`` and ``set_brightness`` write
two frames (profile switch, then lighting) and are not atomic: if the
second write fails the profile switch has already taken effect.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

import usb.core
import usb.util

from .conf import DeviceConfig, load_device_config
from .protocol import (
    Brightness,
    Color,
    PollingRate,
    Profile,
    brightness_frame,
    color_frame,
    is_valid_frame,
    polling_rate_frame,
    switch_profile_frame,
    win_key_frame,
)
from .transport import ControlTransport, get_backend

log = logging.getLogger(__name__)


@dataclass
class KeyboardInfo:
    """A matching keyboard seen on the bus."""
    bus: int
    address: int
    vid: int
    pid: int
    serial: str = ""

    @property
    def path(self) -> str:
        return f"{self.bus:03d}:{self.address:03d}"


class SkillerProPlus:
    """An open session with one Skiller Pro+ keyboard.

    Every setter returns the number of bytes written.  USB errors from the
    transport propagate unchanged and are never retried.
    """

    def __init__(self, transport: ControlTransport, timeout_ms: int):
        self._transport: Optional[ControlTransport] = transport
        self.timeout_ms = timeout_ms

    @classmethod
    def open(cls, timeout_ms: Optional[int] = None,
             config: Optional[DeviceConfig] = None) -> Optional['SkillerProPlus']:
        """Find the keyboard and open a session.

        Args:
            timeout_ms: Per-transfer timeout.  Defaults to the configured one.
            config: Device match settings.  Defaults to the user config file.

        Returns:
            The session, or None if no matching device is on the bus.
        """
        if config is None:
            config = load_device_config()
        if timeout_ms is None:
            timeout_ms = config.timeout_ms

        backend = get_backend(config.backend)
        transport = backend.find(config.vid, config.pid, config.interface)
        if transport is None:
            log.info("Skiller Pro+ %04x:%04x not found", config.vid, config.pid)
            return None

        try:
            transport.detach_if_active()
        except Exception:
            transport.close()
            raise

        log.info("Opened Skiller Pro+ %04x:%04x via %s",
                 config.vid, config.pid, transport.description)
        return cls(transport, timeout_ms)

    # -- Settings ---------------------------------------------------------

    def set_color(self, color: Color, profile: Profile) -> int:
        """Switch to *profile* and set its LED color."""
        written = self._write(switch_profile_frame(profile))
        written += self._write(color_frame(color, profile))
        return written

    def set_profile(self, profile: Profile) -> int:
        """Make *profile* the active profile."""
        return self._write(switch_profile_frame(profile))

    def set_brightness(self, brightness: Brightness, profile: Profile) -> int:
        """Switch to *profile* and set its brightness mode.

        The color has to be given as part of the mode because the firmware
        expects it in the same frame.
        """
        written = self._write(switch_profile_frame(profile))
        written += self._write(brightness_frame(brightness, profile))
        return written

    def set_polling_rate(self, rate: PollingRate) -> int:
        """Set the global USB polling rate."""
        return self._write(polling_rate_frame(rate))

    def set_win_key(self, enabled: bool, profile: Profile) -> int:
        """Enable or disable the Windows key for *profile*."""
        return self._write(win_key_frame(enabled, profile))

    # -- I/O ----------------------------------------------------------------

    def _write(self, frame: bytes) -> int:
        if self._transport is None:
            raise RuntimeError("Device session closed")
        if not is_valid_frame(frame):
            raise RuntimeError(f"Refusing to send malformed frame {frame.hex()}")
        log.debug("-> %s", frame.hex(' '))
        return self._transport.write_control(frame, self.timeout_ms)

    @property
    def is_open(self) -> bool:
        return self._transport is not None

    def close(self) -> None:
        """Release the device handle."""
        if self._transport is not None:
            self._transport.close()
            self._transport = None
            log.info("Skiller Pro+ session closed")

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()


# =========================================================================
# Device discovery helper
# =========================================================================

def find_keyboards(config: Optional[DeviceConfig] = None) -> List[KeyboardInfo]:
    """List every matching keyboard on the bus without opening a session.

    ``SkillerProPlus.open`` always takes the first entry.
    """
    if config is None:
        config = load_device_config()

    keyboards = []
    for dev in usb.core.find(find_all=True, idVendor=config.vid, idProduct=config.pid):
        serial = ""
        if dev.iSerialNumber:
            try:
                serial = usb.util.get_string(dev, dev.iSerialNumber) or ""
            except (usb.core.USBError, ValueError) as e:
                # Reading string descriptors needs device access permissions
                log.debug("Cannot read serial of %03d:%03d: %s", dev.bus, dev.address, e)
        keyboards.append(KeyboardInfo(
            bus=dev.bus,
            address=dev.address,
            vid=config.vid,
            pid=config.pid,
            serial=serial,
        ))
    return keyboards
