"""Smart home commands on ``/webservices/homeautoswitch.lua``.

Every command is a GET request; ``switchcmd`` selects the command and is
pinned as a literal in each payload shape. Switch commands answer with
plain text (``"1\\n"``), device queries with XML.
"""

from __future__ import annotations

from typing import Dict

from ..schema import (
    ArrayShape,
    LiteralShape,
    NumberShape,
    NumericStringShape,
    ObjectShape,
    Shape,
    StringShape,
    TrimmedShape,
    UnknownShape,
    nullish,
    optional,
    union,
)
from .types import FRITZ_BOOL, FRITZ_FALSE, FRITZ_TRUE, EndpointDescriptor, HttpMethod

HOMEAUTO_SWITCH_PATH = "/webservices/homeautoswitch.lua"


def _command(name: str, response: Shape, **fields: Shape) -> EndpointDescriptor:
    members: Dict[str, Shape] = dict(fields)
    members["switchcmd"] = LiteralShape(name)
    members["sid"] = optional(StringShape())
    return EndpointDescriptor(
        path=HOMEAUTO_SWITCH_PATH,
        method=HttpMethod.GET,
        request=ObjectShape(members),
        response=response,
    )


class Switches:
    """Commands for FRITZ!DECT switchable outlets."""

    LIST = _command("getswitchlist", TrimmedShape(StringShape()))
    TURN_ON = _command("setswitchon", TrimmedShape(FRITZ_TRUE), ain=StringShape())
    TURN_OFF = _command("setswitchoff", TrimmedShape(FRITZ_FALSE), ain=StringShape())
    TOGGLE = _command("setswitchtoggle", TrimmedShape(FRITZ_BOOL), ain=StringShape())
    GET_STATE = _command(
        "getswitchstate",
        TrimmedShape(union(FRITZ_FALSE, FRITZ_TRUE, LiteralShape("inval"))),
        ain=StringShape(),
    )
    IS_PRESENT = _command("getswitchpresent", TrimmedShape(FRITZ_BOOL), ain=StringShape())


def _bounded(minimum: int, maximum: int) -> NumericStringShape:
    return NumericStringShape(minimum=minimum, maximum=maximum)


DEVICE = ObjectShape({
    "@identifier": StringShape(),
    "@id": StringShape(),
    "@manufacturer": StringShape(),
    "@productname": StringShape(),
    "@functionbitmask": NumericStringShape(),
    "present": FRITZ_BOOL,
    "txbusy": FRITZ_BOOL,
    "name": StringShape(),
    "batterylow": nullish(FRITZ_BOOL),
    "battery": optional(_bounded(0, 100)),
    "switch": optional(ObjectShape({
        "state": nullish(FRITZ_BOOL),
        "mode": nullish(union(LiteralShape("auto"), LiteralShape("manual"))),
        "lock": nullish(FRITZ_BOOL),
        "devicelock": nullish(FRITZ_BOOL),
    })),
    "powermeter": optional(UnknownShape()),
    "temperature": optional(ObjectShape({
        "celsius": nullish(NumericStringShape()),
        "offset": nullish(NumericStringShape()),
    })),
    "alert": optional(UnknownShape()),
    "button": optional(UnknownShape()),
    "avmbutton": optional(UnknownShape()),
    "etsiunitinfo": optional(UnknownShape()),
    "simpleonoff": optional(ObjectShape({
        "state": nullish(FRITZ_BOOL),
    })),
    "levelcontrol": optional(ObjectShape({
        "level": nullish(_bounded(0, 255)),
        "levelpercentage": nullish(_bounded(0, 100)),
    })),
    "colorcontrol": optional(ObjectShape({
        "@supported_modes": NumericStringShape(),
        "@current_mode": nullish(NumericStringShape()),
        "@fullcolorsupport": nullish(FRITZ_BOOL),
        "@mapped": nullish(FRITZ_BOOL),
        "hue": nullish(_bounded(0, 359)),
        "saturation": nullish(_bounded(0, 255)),
        "unmapped_hue": nullish(_bounded(0, 359)),
        "unmapped_saturation": nullish(_bounded(0, 255)),
        "temperature": nullish(_bounded(2700, 6500)),
    })),
    "blind": optional(UnknownShape()),
    "hkr": optional(UnknownShape()),
})


class Devices:
    """Commands for smart home devices in general."""

    LIST = _command(
        "getdevicelistinfos",
        ObjectShape({
            "devicelist": ObjectShape({
                "device": optional(ArrayShape(DEVICE)),
            }),
        }),
    )
    INFO = _command(
        "getdeviceinfos",
        union(
            ObjectShape({"device": DEVICE}),
            ObjectShape({"group": UnknownShape()}),
        ),
        ain=StringShape(),
    )
    SET_ON_OFF = _command(
        "setsimpleonoff",
        UnknownShape(),
        ain=StringShape(),
        onoff=FRITZ_BOOL,
    )
    SET_LEVEL = _command(
        "setlevel",
        UnknownShape(),
        ain=StringShape(),
        level=NumberShape(minimum=0, maximum=255),
    )
    SET_LEVEL_PERCENTAGE = _command(
        "setlevelpercentage",
        UnknownShape(),
        ain=StringShape(),
        level=NumberShape(minimum=0, maximum=100),
    )
    SET_COLOR_UNMAPPED = _command(
        "setunmappedcolor",
        UnknownShape(),
        ain=StringShape(),
        hue=NumberShape(minimum=0, maximum=359),
        saturation=NumberShape(minimum=0, maximum=255),
        duration=NumberShape(minimum=0),
    )
    SET_COLOR_TEMPERATURE = _command(
        "setcolortemperature",
        UnknownShape(),
        ain=StringShape(),
        temperature=NumberShape(minimum=2700, maximum=6500),
        duration=NumberShape(minimum=0),
    )
