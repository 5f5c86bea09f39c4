"""Smart home devices connected to a FRITZ!Box.

Example:
    >>> devices = await list_devices(client)
    >>> for device in devices:
    ...     print(f"{device.name} ({device.product_name}) by {device.manufacturer}")
    ...     if device.supports_feature(DeviceFunction.SUPPORTS_ON_OFF):
    ...         await device.turn_on()
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

from .client import FritzClient
from .errors import DeviceNotFoundError, RequestFailedError, UnsupportedFeatureError
from .protocol.homeauto_switch import Devices, Switches

# Configure module logger
logger = logging.getLogger(__name__)

SERIALIZATION_VERSION = 1

LEVEL_RANGE = (0, 255)
PERCENT_RANGE = (0, 100)
TEMPERATURE_RANGE = (2700, 6500)
HUE_RANGE = (0, 359)
SATURATION_RANGE = (0, 255)


class DeviceFunction(enum.IntFlag):
    """Bits of the ``functionbitmask`` device attribute."""

    HAN_FUN_DEVICE = 1 << 0
    LIGHT = 1 << 2
    ALARM_SENSOR = 1 << 4
    FRITZ_BUTTON = 1 << 5
    FRITZ_RADIATOR = 1 << 6
    FRITZ_ENERGY_METER = 1 << 7
    TEMPERATURE_SENSOR = 1 << 8
    FRITZ_SWITCH = 1 << 9
    FRITZ_DECT_REPEATER = 1 << 10
    FRITZ_MICROPHONE = 1 << 11
    HAN_FUN_UNIT = 1 << 13
    SUPPORTS_ON_OFF = 1 << 15
    SUPPORTS_LEVEL = 1 << 16
    SUPPORTS_COLOR = 1 << 17
    BLIND = 1 << 18
    HUMIDITY_SENSOR = 1 << 20


@dataclass(frozen=True)
class ColorTemperature:
    """White light color temperature in kelvin (2700-6500)."""

    kelvin: int


@dataclass(frozen=True)
class HueSaturation:
    """Free color: hue 0-359 degrees, saturation 0-255."""

    hue: int
    saturation: int


ColorCommand = Union[ColorTemperature, HueSaturation]


def _check_range(name: str, value: int, bounds: tuple) -> None:
    low, high = bounds
    if value < low or value > high:
        raise ValueError(f"{name} must be between {low} and {high}")


class SmartHomeDevice:
    """A smart home device as reported by the router.

    Attributes:
        client: Client used for device commands.
        info: Validated device data from ``getdevicelistinfos`` or
            ``getdeviceinfos``.
    """

    def __init__(self, client: FritzClient, info: Dict[str, Any]) -> None:
        self.client = client
        self.info = info

    def __repr__(self) -> str:
        return f"SmartHomeDevice(actor_id={self.actor_id!r}, name={self.name!r})"

    @property
    def actor_id(self) -> str:
        """The actor identification number (AIN)."""
        return self.info["@identifier"]

    @property
    def name(self) -> str:
        return self.info["name"]

    @property
    def product_name(self) -> str:
        return self.info["@productname"]

    @property
    def manufacturer(self) -> str:
        return self.info["@manufacturer"]

    @property
    def features(self) -> DeviceFunction:
        """Supported functions of the device."""
        return DeviceFunction(int(self.info["@functionbitmask"]))

    @property
    def present(self) -> bool:
        """Whether the device is currently connected."""
        return self.info["present"] == "1"

    def supports_feature(self, feature: DeviceFunction) -> bool:
        return (self.features & feature) == feature

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "version": SERIALIZATION_VERSION,
            "actor_id": self.actor_id,
            "name": self.name,
            "product_name": self.product_name,
            "manufacturer": self.manufacturer,
            "features": [flag.name for flag in DeviceFunction if flag in self.features],
            "present": self.present,
        }

    def _require(self, feature: DeviceFunction, label: str) -> None:
        if not self.supports_feature(feature):
            raise UnsupportedFeatureError(f"Device {self.actor_id} does not support {label}")

    async def refresh(self) -> SmartHomeDevice:
        """Reload the device data from the router."""
        device = await smart_device(self.client, self.actor_id)
        self.info = device.info
        return self

    async def turn_on(self) -> None:
        """Turn the device on."""
        await self._set_on_off("1")

    async def turn_off(self) -> None:
        """Turn the device off."""
        await self._set_on_off("0")

    async def _set_on_off(self, onoff: str) -> None:
        self._require(DeviceFunction.SUPPORTS_ON_OFF, "On/Off")
        await self.client.call(Devices.SET_ON_OFF, {
            "ain": self.actor_id,
            "switchcmd": "setsimpleonoff",
            "onoff": onoff,
        })
        logger.debug("Set %s on/off to %s", self.actor_id, onoff)

    async def set_level(self, level: int) -> None:
        """Set the level, e.g. brightness for lights or height for blinds.

        Args:
            level: Level between 0 and 255.
        """
        self._require(DeviceFunction.SUPPORTS_LEVEL, "Level")
        _check_range("Level", level, LEVEL_RANGE)
        await self.client.call(Devices.SET_LEVEL, {
            "ain": self.actor_id,
            "switchcmd": "setlevel",
            "level": level,
        })

    async def set_level_percent(self, percent: int) -> None:
        """Set the level as a percentage (0-100)."""
        self._require(DeviceFunction.SUPPORTS_LEVEL, "Level")
        _check_range("Percent", percent, PERCENT_RANGE)
        await self.client.call(Devices.SET_LEVEL_PERCENTAGE, {
            "ain": self.actor_id,
            "switchcmd": "setlevelpercentage",
            "level": percent,
        })

    async def set_color(self, color: ColorCommand) -> None:
        """Set a color temperature or a hue/saturation color.

        Args:
            color: :class:`ColorTemperature` or :class:`HueSaturation`.

        Raises:
            UnsupportedFeatureError: If the device has no color support.
            ValueError: If a value is out of range.
        """
        self._require(DeviceFunction.SUPPORTS_COLOR, "Color")

        if isinstance(color, ColorTemperature):
            _check_range("Temperature", color.kelvin, TEMPERATURE_RANGE)
            await self.client.call(Devices.SET_COLOR_TEMPERATURE, {
                "ain": self.actor_id,
                "switchcmd": "setcolortemperature",
                "temperature": color.kelvin,
                "duration": 0,
            })
        elif isinstance(color, HueSaturation):
            _check_range("Hue", color.hue, HUE_RANGE)
            _check_range("Saturation", color.saturation, SATURATION_RANGE)
            await self.client.call(Devices.SET_COLOR_UNMAPPED, {
                "ain": self.actor_id,
                "switchcmd": "setunmappedcolor",
                "hue": color.hue,
                "saturation": color.saturation,
                "duration": 0,
            })
        else:
            raise TypeError(f"Unknown color command: {color!r}")


async def list_devices(client: FritzClient) -> List[SmartHomeDevice]:
    """List all smart home devices known to the router."""
    result = await client.call(Devices.LIST, {"switchcmd": "getdevicelistinfos"})
    devices = result["devicelist"].get("device", [])
    logger.debug("Found %d smart home devices", len(devices))
    return [SmartHomeDevice(client, info) for info in devices]


async def smart_device(client: FritzClient, ain: str) -> SmartHomeDevice:
    """Look up a single device by its AIN.

    Raises:
        DeviceNotFoundError: If the router does not know the AIN or the AIN
            belongs to a device group.
    """
    try:
        result = await client.call(Devices.INFO, {"ain": ain, "switchcmd": "getdeviceinfos"})
    except RequestFailedError as e:
        if e.status != 400:
            raise
        raise DeviceNotFoundError(
            f"Device {ain!r} not found",
            status=e.status,
            status_text=e.status_text,
            data=e.data,
        ) from e

    if "device" not in result:
        raise DeviceNotFoundError(f"{ain!r} is a device group", status=200)
    return SmartHomeDevice(client, result["device"])


async def list_switches(client: FritzClient) -> List[str]:
    """AINs of all switchable outlets."""
    text = await client.call(Switches.LIST, {"switchcmd": "getswitchlist"})
    return [ain.strip() for ain in text.split(",") if ain.strip()]


async def switch_on(client: FritzClient, ain: str) -> None:
    await client.call(Switches.TURN_ON, {"ain": ain, "switchcmd": "setswitchon"})


async def switch_off(client: FritzClient, ain: str) -> None:
    await client.call(Switches.TURN_OFF, {"ain": ain, "switchcmd": "setswitchoff"})


async def toggle_switch(client: FritzClient, ain: str) -> bool:
    """Toggle a switch and return its new state."""
    state = await client.call(Switches.TOGGLE, {"ain": ain, "switchcmd": "setswitchtoggle"})
    return state == "1"


async def switch_state(client: FritzClient, ain: str) -> Optional[bool]:
    """Current switch state, ``None`` when the router does not know it."""
    state = await client.call(Switches.GET_STATE, {"ain": ain, "switchcmd": "getswitchstate"})
    if state == "inval":
        return None
    return state == "1"


async def switch_present(client: FritzClient, ain: str) -> bool:
    """Whether the switch is connected."""
    state = await client.call(Switches.IS_PRESENT, {"ain": ain, "switchcmd": "getswitchpresent"})
    return state == "1"
