#!/usr/bin/env python3
"""
USB transport layer for the Skiller Pro+.

The keyboard takes its settings as HID feature reports on interface 1.
Each 8-byte frame is sent with one class control transfer::

    bmRequestType = 0x21   (host-to-device, class, interface)
    bRequest      = 0x09   (SET_REPORT)
    wValue        = 0x0307 (report type 3 = feature, report ID 7)
    wIndex        = 1      (interface)

The ``ControlTransport`` ABC abstracts that transfer so that:
  • Tests can inject a mock transport (no real hardware needed).
  • ``PyUsbTransport`` issues the raw control transfer via pyusb (libusb).
  • ``HidApiTransport`` sends the same request through the OS HID driver.

Linux dependencies:
  • pyusb:  ``pip install pyusb``  (needs libusb1 — ``apt install libusb-1.0-0``)
  • hid:    ``pip install hid``    (needs libhidapi — ``apt install libhidapi-hidraw0``)
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Optional

import usb.core
import usb.util

# Optional HIDAPI backend, graceful import
try:
    import hid as hidapi
    HIDAPI_AVAILABLE = True
except ImportError:
    hidapi = None
    HIDAPI_AVAILABLE = False

log = logging.getLogger(__name__)

# =========================================================================
# Constants
# =========================================================================

HID_SET_REPORT = 0x09
FEATURE_REPORT_VALUE = 0x0307  # (report type << 8) | report ID

REQUEST_TYPE_OUT_CLASS_INTERFACE = usb.util.build_request_type(
    usb.util.CTRL_OUT,
    usb.util.CTRL_TYPE_CLASS,
    usb.util.CTRL_RECIPIENT_INTERFACE,
)


# =========================================================================
# Abstract transport
# =========================================================================

class ControlTransport(ABC):
    """Abstract control-transfer transport — mockable for testing."""

    @classmethod
    @abstractmethod
    def find(cls, vid: int, pid: int, interface: int) -> Optional['ControlTransport']:
        """Open the first device matching *vid*/*pid*, or None if absent."""

    @abstractmethod
    def write_control(self, data: bytes, timeout_ms: int) -> int:
        """Send one SET_REPORT control transfer.  Returns bytes written."""

    @abstractmethod
    def detach_if_active(self) -> bool:
        """Detach a bound kernel driver from the interface.

        Returns True if a driver was detached.  Backends that go through
        the OS driver return False.
        """

    @abstractmethod
    def close(self) -> None:
        """Release the device handle.  Safe to call twice."""

    @property
    @abstractmethod
    def description(self) -> str:
        """Short human-readable identity for log messages."""


# =========================================================================
# Real transport: PyUSB  (libusb backend)
# =========================================================================

class PyUsbTransport(ControlTransport):
    """Raw control transfers using pyusb.

    The kernel's usbhid driver must be detached from the interface first,
    otherwise libusb reports an I/O error.
    """

    def __init__(self, device, interface: int):
        self._device = device
        self._interface = interface

    @classmethod
    def find(cls, vid: int, pid: int, interface: int) -> Optional['PyUsbTransport']:
        device = usb.core.find(idVendor=vid, idProduct=pid)
        if device is None:
            log.debug("No USB device %04x:%04x on the bus", vid, pid)
            return None
        return cls(device, interface)

    def detach_if_active(self) -> bool:
        try:
            active = self._device.is_kernel_driver_active(self._interface)
        except NotImplementedError:
            # Not supported by this libusb backend (e.g. Windows, macOS)
            return False
        if not active:
            return False
        self._device.detach_kernel_driver(self._interface)
        log.debug("Detached kernel driver from interface %d", self._interface)
        return True

    def write_control(self, data: bytes, timeout_ms: int) -> int:
        if self._device is None:
            raise RuntimeError("Transport not open")
        return self._device.ctrl_transfer(
            REQUEST_TYPE_OUT_CLASS_INTERFACE,
            HID_SET_REPORT,
            FEATURE_REPORT_VALUE,
            self._interface,
            data,
            timeout=timeout_ms,
        )

    def close(self) -> None:
        if self._device is not None:
            usb.util.dispose_resources(self._device)
            self._device = None

    @property
    def description(self) -> str:
        if self._device is None:
            return "pyusb (closed)"
        return (f"pyusb bus {self._device.bus} address {self._device.address} "
                f"interface {self._interface}")


# =========================================================================
# Real transport: HIDAPI
# =========================================================================
# Alternative backend that needs no kernel driver detach: hidraw sends the
# feature report with the same SET_REPORT request.  Frame byte 0 (0x07)
# doubles as the report ID hidapi expects.

class HidApiTransport(ControlTransport):
    """Feature-report transport using the ``hid`` package.

    The per-call timeout is not applicable to feature reports and is
    ignored.

    Requires: ``pip install hid`` + ``apt install libhidapi-hidraw0``
    """

    def __init__(self, device, interface: int):
        _require_hidapi()
        self._device = device
        self._interface = interface

    @classmethod
    def find(cls, vid: int, pid: int, interface: int) -> Optional['HidApiTransport']:
        _require_hidapi()
        for info in hidapi.enumerate(vid, pid):
            if info.get('interface_number') != interface:
                continue
            return cls(hidapi.Device(path=info['path']), interface)
        log.debug("No HID interface %d for %04x:%04x", interface, vid, pid)
        return None

    def detach_if_active(self) -> bool:
        return False

    def write_control(self, data: bytes, timeout_ms: int) -> int:
        if self._device is None:
            raise RuntimeError("Transport not open")
        return self._device.send_feature_report(bytes(data))

    def close(self) -> None:
        if self._device is not None:
            self._device.close()
            self._device = None

    @property
    def description(self) -> str:
        state = "" if self._device is not None else " (closed)"
        return f"hidapi interface {self._interface}{state}"


def _require_hidapi() -> None:
    if not HIDAPI_AVAILABLE:
        raise ImportError(
            "hid is not installed. Install with: pip install hid\n"
            "Also need libhidapi: apt install libhidapi-hidraw0 (Debian/Ubuntu) "
            "or dnf install hidapi (Fedora)"
        )


BACKENDS = {
    'pyusb': PyUsbTransport,
    'hidapi': HidApiTransport,
}


def get_backend(name: str) -> type:
    """Look up a transport class by its config name."""
    try:
        return BACKENDS[name]
    except KeyError:
        raise ValueError(
            f"Unknown USB backend {name!r} (expected one of: {', '.join(BACKENDS)})"
        ) from None
