"""Device settings and config persistence for skiller.

Config is stored at ~/.config/skiller/config.json (XDG-compliant).

Usage:
    from skiller.conf import load_device_config

    cfg = load_device_config()
    cfg.vid, cfg.pid        # USB IDs to match
    cfg.interface           # Interface that receives control transfers
    cfg.timeout_ms          # Per-transfer timeout
    cfg.backend             # "pyusb" or "hidapi"

Only one keyboard is managed per session: the first device matching
vid/pid on the bus.
"""
from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, fields

log = logging.getLogger(__name__)

# =========================================================================
# Config file location (XDG-compliant)
# =========================================================================

_XDG_CONFIG = os.environ.get('XDG_CONFIG_HOME', os.path.expanduser('~/.config'))
CONFIG_DIR = os.path.join(_XDG_CONFIG, 'skiller')
CONFIG_PATH = os.path.join(CONFIG_DIR, 'config.json')

# Sharkoon Skiller Pro+
DEFAULT_VID = 0x04d9
DEFAULT_PID = 0xa096
DEFAULT_INTERFACE = 1
DEFAULT_TIMEOUT_MS = 2000
DEFAULT_BACKEND = 'pyusb'


@dataclass
class DeviceConfig:
    """Which keyboard to talk to and how."""
    vid: int = DEFAULT_VID
    pid: int = DEFAULT_PID
    interface: int = DEFAULT_INTERFACE
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    backend: str = DEFAULT_BACKEND

    @classmethod
    def from_dict(cls, data: dict) -> 'DeviceConfig':
        """Build from a config section, ignoring unknown keys.

        ``vid``/``pid`` may be ints or hex strings such as ``"0x04d9"``.
        Values of the wrong type raise TypeError or ValueError.
        """
        known = {f.name for f in fields(cls)}
        kwargs = {}
        for key, value in data.items():
            if key not in known:
                log.warning("Ignoring unknown device config key %r", key)
                continue
            if key == 'backend':
                if not isinstance(value, str):
                    raise TypeError(f"backend must be a string, got {value!r}")
            elif isinstance(value, bool):
                raise TypeError(f"{key} must be a number, got {value!r}")
            elif key in ('vid', 'pid') and isinstance(value, str):
                value = int(value, 16)
            else:
                value = int(value)
            kwargs[key] = value
        return cls(**kwargs)

    def to_dict(self) -> dict:
        data = asdict(self)
        data['vid'] = f"0x{self.vid:04x}"
        data['pid'] = f"0x{self.pid:04x}"
        return data


# =========================================================================
# Low-level config persistence
# =========================================================================

def load_config() -> dict:
    """Load user config from disk. Returns empty dict on missing/corrupt file."""
    try:
        with open(CONFIG_PATH, 'r') as f:
            config = json.load(f)
    except (FileNotFoundError, json.JSONDecodeError, OSError):
        return {}
    if not isinstance(config, dict):
        log.warning("Ignoring config file %s: top level is not an object", CONFIG_PATH)
        return {}
    return config


def save_config(config: dict):
    """Save user config to disk."""
    os.makedirs(CONFIG_DIR, exist_ok=True)
    with open(CONFIG_PATH, 'w') as f:
        json.dump(config, f, indent=2)


# =========================================================================
# Device section
# =========================================================================

def load_device_config() -> DeviceConfig:
    """Defaults overlaid with the ``device`` section of the config file."""
    section = load_config().get('device', {})
    if not isinstance(section, dict):
        log.warning("Ignoring malformed 'device' config section")
        return DeviceConfig()
    try:
        return DeviceConfig.from_dict(section)
    except (TypeError, ValueError) as e:
        log.warning("Ignoring invalid device config (%s), using defaults", e)
        return DeviceConfig()


def save_device_config(cfg: DeviceConfig):
    """Persist the ``device`` section, keeping the rest of the file."""
    config = load_config()
    config['device'] = cfg.to_dict()
    save_config(config)
