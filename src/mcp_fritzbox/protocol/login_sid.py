"""Session endpoints on ``/login_sid.lua``.

With ``Accept: application/json`` the router answers in JSON:

    {
        "device": {"productName": "FRITZ!Box 7590", ...},
        "sessionInfo": {
            "sid": "0000000000000000",
            "challenge": "2$60000$...$6000$...",
            "blockTime": 0,
            "users": [{"user": "fritz1234", "last": "1"}]
        }
    }
"""

from __future__ import annotations

from ..schema import (
    ArrayShape,
    LiteralShape,
    NumberShape,
    ObjectShape,
    StringShape,
    optional,
)
from .types import EndpointDescriptor

LOGIN_SID_PATH = "/login_sid.lua?version=2"

SESSION_RESPONSE = ObjectShape({
    "device": ObjectShape({
        "productName": optional(StringShape()),
        "location": optional(ObjectShape({
            "language": StringShape(),
            "country": StringShape(),
        })),
        "fallbackRedirectUrl": optional(StringShape(url=True)),
    }),
    "sessionInfo": ObjectShape({
        "sid": StringShape(),
        "challenge": StringShape(),
        "blockTime": NumberShape(minimum=0),
        "users": ArrayShape(ObjectShape({
            "user": StringShape(),
            "last": optional(LiteralShape("1")),
        })),
    }),
})

# Challenge and current session state
REQUEST_SID = EndpointDescriptor(path=LOGIN_SID_PATH, response=SESSION_RESPONSE)

LOGIN_SID = REQUEST_SID.with_request(ObjectShape({
    "username": StringShape(),
    "response": StringShape(),
}))

VALIDATE_SID = REQUEST_SID.with_request(ObjectShape({
    "sid": StringShape(),
}))

LOGOUT_SID = REQUEST_SID.with_request(ObjectShape({
    "logout": LiteralShape("1"),
    "sid": StringShape(),
}))
