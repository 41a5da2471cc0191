"""
skiller - Sharkoon Skiller Pro+ keyboard control for Linux

Changes keyboard settings over USB:
- LED color per profile
- Brightness and animation mode (static, pulsating, color cycle)
- Active profile
- Polling rate
- Windows key on/off

Usage:
    from skiller import SkillerProPlus, Color, Profile, Static

    kb = SkillerProPlus.open(timeout_ms=2000)  # None if not connected
    kb.set_color(Color.RED, Profile.P2)
    kb.set_brightness(Static(level=50, color=Color.RED), Profile.P1)
"""

from skiller.__version__ import __version__
from skiller.conf import DeviceConfig, load_device_config
from skiller.device import KeyboardInfo, SkillerProPlus, find_keyboards
from skiller.protocol import (
    Brightness,
    Color,
    Cycle,
    PollingRate,
    Profile,
    Pulsating,
    Static,
)

__all__ = [
    # Version
    "__version__",
    # Session
    "SkillerProPlus",
    "KeyboardInfo",
    "find_keyboards",
    # Settings
    "Color",
    "Profile",
    "PollingRate",
    "Brightness",
    "Static",
    "Pulsating",
    "Cycle",
    # Config
    "DeviceConfig",
    "load_device_config",
]
