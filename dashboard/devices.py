"""
Home Dashboard - Device Manager
=================================
Holds the list of home devices shown on the /home dashboard grid and
applies the mutations the grid sends back (power toggle, brightness).

Devices are persisted in devices.json at the project root. When the
file is missing, a default set is written so a fresh install has
something to show.

Device layout:
    {
        "id": "living-room-lamp",
        "name": "Living Room Lamp",
        "type": "light",
        "desc": "Floor lamp by the sofa",
        "on": false,
        "brightness": 60          # 0..100
    }

Usage:
    devices = DeviceManager(devices_file, events)
    devices.list()                       # -> list of device dicts
    devices.toggle("living-room-lamp")   # -> updated device
    devices.set_brightness("desk-light", 40)
    devices.status                       # -> uptime / lastEvent snapshot
"""

import copy
import math
import os
import threading
import time
from typing import Any

from dashboard.eventlog import EventLog
from dashboard.jsonfile import read_json, write_json_atomic


DEFAULT_DEVICES = [
    {
        "id": "living-room-lamp",
        "name": "Living Room Lamp",
        "type": "light",
        "desc": "Floor lamp by the sofa",
        "on": False,
        "brightness": 60,
    },
    {
        "id": "kitchen-lights",
        "name": "Kitchen Lights",
        "type": "light",
        "desc": "Ceiling spots",
        "on": False,
        "brightness": 80,
    },
    {
        "id": "desk-light",
        "name": "Desk Light",
        "type": "light",
        "desc": "Study desk LED strip",
        "on": False,
        "brightness": 40,
    },
    {
        "id": "coffee-maker",
        "name": "Coffee Maker",
        "type": "plug",
        "desc": "Smart plug, kitchen counter",
        "on": False,
        "brightness": 0,
    },
    {
        "id": "bedroom-fan",
        "name": "Bedroom Fan",
        "type": "fan",
        "desc": "Speed follows brightness",
        "on": False,
        "brightness": 50,
    },
]

MIN_BRIGHTNESS = 0
MAX_BRIGHTNESS = 100


class DeviceManager:
    """
    In-memory device registry backed by devices.json.

    Attributes:
        devices_file: Path to the JSON file holding the device list.
        events:       Event log used for mutations and load errors.
        started_at:   Monotonic time the manager was created (for uptime).
    """

    def __init__(self, devices_file: str, events: EventLog):
        """
        Initialize the manager and load (or seed) the device list.

        Args:
            devices_file: Absolute path to devices.json.
            events:       Event log instance.
        """
        self.devices_file = devices_file
        self.events = events
        self.started_at = time.monotonic()
        self._devices: list[dict] = []
        self._lock = threading.Lock()
        self._load()

    @property
    def uptime_ms(self) -> int:
        """Milliseconds since the manager (and thus the server) started."""
        return int((time.monotonic() - self.started_at) * 1000)

    @property
    def status(self) -> dict[str, Any]:
        """
        Get the status snapshot polled by the dashboard.

        Returns:
            Dict with uptime (ms), the last recorded event, and counts.
        """
        with self._lock:
            total = len(self._devices)
            active = sum(1 for d in self._devices if d.get("on"))
        return {
            "ok": True,
            "uptime": self.uptime_ms,
            "lastEvent": self.events.last_event,
            "devices": total,
            "active": active,
        }

    def list(self) -> list[dict]:
        """Return a copy of all devices in display order."""
        with self._lock:
            return copy.deepcopy(self._devices)

    def toggle(self, device_id: str) -> dict:
        """
        Flip a device's power state and persist it.

        Returns:
            A copy of the updated device.

        Raises:
            KeyError: Unknown device id.
            OSError:  devices.json could not be written.
        """
        with self._lock:
            device = self._find(device_id)
            device["on"] = not device.get("on", False)
            self._save()
            updated = copy.deepcopy(device)

        state = "ON" if updated["on"] else "OFF"
        self.events.info("DEVICE", f"{updated.get('name', device_id)} turned {state}")
        return updated

    def set_brightness(self, device_id: str, value: Any) -> dict:
        """
        Set a device's brightness, clamped to 0..100.

        Args:
            device_id: Device to update.
            value:     Requested level (int or float; bools are rejected).

        Returns:
            A copy of the updated device.

        Raises:
            ValueError: If value is not a finite number.
            KeyError:   Unknown device id.
            OSError:    devices.json could not be written.
        """
        level = _coerce_brightness(value)

        with self._lock:
            device = self._find(device_id)
            device["brightness"] = level
            self._save()
            updated = copy.deepcopy(device)

        self.events.info("DEVICE", f"{updated.get('name', device_id)} brightness {level}%")
        return updated

    # -- Internal helpers ------------------------------------------------------

    def _find(self, device_id: str) -> dict:
        for device in self._devices:
            if device.get("id") == device_id:
                return device
        raise KeyError(device_id)

    def _load(self) -> None:
        """Load devices.json, seeding it with DEFAULT_DEVICES when absent."""
        if not os.path.exists(self.devices_file):
            self._devices = copy.deepcopy(DEFAULT_DEVICES)
            try:
                self._save()
            except OSError as e:
                self.events.error("DEVICES", f"Could not write {self.devices_file}: {e}")
            return

        try:
            data = read_json(self.devices_file)
        except (ValueError, OSError) as e:
            self.events.error("DEVICES", f"Could not read {self.devices_file}: {e}")
            self._devices = copy.deepcopy(DEFAULT_DEVICES)
            return

        if not isinstance(data, list):
            self.events.error("DEVICES", f"{self.devices_file} does not contain a list")
            self._devices = copy.deepcopy(DEFAULT_DEVICES)
            return

        self._devices = [_normalize(d) for d in data if isinstance(d, dict) and d.get("id")]

    def _save(self) -> None:
        """Rewrite devices.json with the full device list."""
        write_json_atomic(self.devices_file, self._devices)


def _coerce_brightness(value: Any) -> int:
    """Validate and clamp a brightness value to an int in 0..100."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError("brightness must be a number")
    if isinstance(value, int):
        return max(MIN_BRIGHTNESS, min(MAX_BRIGHTNESS, value))
    if not math.isfinite(value):
        raise ValueError("brightness must be finite")
    return max(MIN_BRIGHTNESS, min(MAX_BRIGHTNESS, int(round(value))))


def _normalize(device: dict) -> dict:
    """Fill in missing fields on a device loaded from disk."""
    result = {
        "id": str(device["id"]),
        "name": device.get("name") or str(device["id"]),
        "type": device.get("type", ""),
        "desc": device.get("desc", ""),
        "on": bool(device.get("on", False)),
        "brightness": 0,
    }
    try:
        result["brightness"] = _coerce_brightness(device.get("brightness", 0))
    except ValueError:
        pass
    # Keep any extra fields the file carries
    for key, value in device.items():
        result.setdefault(key, value)
    return result
