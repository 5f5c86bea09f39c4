"""Tests for smart home devices and switches."""

from typing import Callable, Dict, List

import httpx
import pytest

from mcp_fritzbox.client import FritzClient
from mcp_fritzbox.errors import DeviceNotFoundError, RequestFailedError, UnsupportedFeatureError
from mcp_fritzbox.smarthome import (
    ColorTemperature,
    DeviceFunction,
    HueSaturation,
    SmartHomeDevice,
    list_devices,
    list_switches,
    smart_device,
    switch_off,
    switch_on,
    switch_present,
    switch_state,
    toggle_switch,
)
from mcp_fritzbox.transport import OutgoingRequest

BASE_URL = "http://fritz.box"

DECT_200_XML = (
    '<device identifier="08761 0000434" id="17" functionbitmask="35712" '
    'fwversion="04.16" manufacturer="AVM" productname="FRITZ!DECT 200">'
    "<present>1</present><txbusy>0</txbusy><name>Steckdose</name>"
    "<switch><state>1</state><mode>manual</mode><lock>0</lock><devicelock>0</devicelock></switch>"
    "<simpleonoff><state>1</state></simpleonoff>"
    "<powermeter><voltage>230051</voltage><power>0</power><energy>707</energy></powermeter>"
    "<temperature><celsius>285</celsius><offset>0</offset></temperature>"
    "</device>"
)

DECT_500_XML = (
    '<device identifier="13077 0012345-1" id="2000" functionbitmask="237572" '
    'fwversion="34.10.16.16.015" manufacturer="AVM" productname="FRITZ!DECT 500">'
    "<present>1</present><txbusy>0</txbusy><name>Lampe</name>"
    "<simpleonoff><state>0</state></simpleonoff>"
    "<levelcontrol><level>255</level><levelpercentage>100</levelpercentage></levelcontrol>"
    '<colorcontrol supported_modes="5" current_mode="4" fullcolorsupport="1" mapped="0">'
    "<hue></hue><saturation></saturation><unmapped_hue></unmapped_hue>"
    "<unmapped_saturation></unmapped_saturation><temperature>2700</temperature></colorcontrol>"
    "<etsiunitinfo><etsideviceid>406</etsideviceid><unittype>278</unittype>"
    "<interfaces>512,514,513</interfaces></etsiunitinfo>"
    "</device>"
)

DEVICE_LIST_XML = f'<devicelist version="1">{DECT_200_XML}{DECT_500_XML}</devicelist>'

Responder = Callable[[OutgoingRequest], httpx.Response]


def xml_response(body: str) -> httpx.Response:
    return httpx.Response(200, text=body, headers={"Content-Type": "text/xml"})


def text_response(body: str) -> httpx.Response:
    return httpx.Response(200, text=body)


class FakeHomeAuto:
    """Routes homeautoswitch.lua commands to canned answers."""

    def __init__(self, answers: Dict[str, Responder]) -> None:
        self.answers = answers
        self.requests: List[OutgoingRequest] = []

    def __call__(self, request: OutgoingRequest) -> httpx.Response:
        self.requests.append(request)
        command = request.url.params["switchcmd"]
        return self.answers[command](request)

    @property
    def last_params(self) -> Dict[str, str]:
        return dict(self.requests[-1].url.params)


def make_client(answers: Dict[str, Responder]):
    router = FakeHomeAuto(answers)
    return router, FritzClient.create_test_client(BASE_URL, router)


def device_list_answers() -> Dict[str, Responder]:
    ok = lambda request: text_response("")  # noqa: E731
    return {
        "getdevicelistinfos": lambda request: xml_response(DEVICE_LIST_XML),
        "setsimpleonoff": ok,
        "setlevel": ok,
        "setlevelpercentage": ok,
        "setcolortemperature": ok,
        "setunmappedcolor": ok,
    }


class TestListDevices:
    """Tests for device listing."""

    @pytest.mark.asyncio
    async def test_list_devices(self) -> None:
        """Test the device list is parsed into devices."""
        router, client = make_client(device_list_answers())

        devices = await list_devices(client)

        assert [d.name for d in devices] == ["Steckdose", "Lampe"]
        assert router.last_params == {"switchcmd": "getdevicelistinfos"}

        outlet, lamp = devices
        assert outlet.actor_id == "08761 0000434"
        assert outlet.product_name == "FRITZ!DECT 200"
        assert outlet.manufacturer == "AVM"
        assert outlet.present is True
        assert outlet.info["temperature"] == {"celsius": 285, "offset": 0}
        assert lamp.info["colorcontrol"]["temperature"] == 2700
        assert lamp.info["colorcontrol"]["hue"] is None

    @pytest.mark.asyncio
    async def test_single_device(self) -> None:
        """Test a list with one device still yields a list."""
        _, client = make_client({
            "getdevicelistinfos": lambda request: xml_response(
                f'<devicelist version="1">{DECT_200_XML}</devicelist>'
            ),
        })
        devices = await list_devices(client)
        assert len(devices) == 1
        assert devices[0].name == "Steckdose"

    @pytest.mark.asyncio
    async def test_empty_device_list(self) -> None:
        """Test a router without devices yields an empty list."""
        _, client = make_client({
            "getdevicelistinfos": lambda request: xml_response('<devicelist version="1"></devicelist>'),
        })
        assert await list_devices(client) == []


class TestSmartHomeDevice:
    """Tests for device properties and commands."""

    async def _devices(self):
        router, client = make_client(device_list_answers())
        outlet, lamp = await list_devices(client)
        return router, outlet, lamp

    @pytest.mark.asyncio
    async def test_features(self) -> None:
        """Test the function bitmask is decoded."""
        _, outlet, lamp = await self._devices()

        assert outlet.features == DeviceFunction(35712)
        assert outlet.supports_feature(DeviceFunction.FRITZ_SWITCH)
        assert outlet.supports_feature(DeviceFunction.SUPPORTS_ON_OFF)
        assert not outlet.supports_feature(DeviceFunction.SUPPORTS_COLOR)

        assert lamp.supports_feature(DeviceFunction.LIGHT)
        assert lamp.supports_feature(
            DeviceFunction.SUPPORTS_ON_OFF | DeviceFunction.SUPPORTS_LEVEL | DeviceFunction.SUPPORTS_COLOR
        )

    @pytest.mark.asyncio
    async def test_to_dict(self) -> None:
        """Test the serialized form."""
        _, outlet, _ = await self._devices()

        assert outlet.to_dict() == {
            "version": 1,
            "actor_id": "08761 0000434",
            "name": "Steckdose",
            "product_name": "FRITZ!DECT 200",
            "manufacturer": "AVM",
            "features": [
                "FRITZ_ENERGY_METER",
                "TEMPERATURE_SENSOR",
                "FRITZ_SWITCH",
                "FRITZ_MICROPHONE",
                "SUPPORTS_ON_OFF",
            ],
            "present": True,
        }

    @pytest.mark.asyncio
    async def test_turn_on_and_off(self) -> None:
        """Test on/off commands send setsimpleonoff."""
        router, outlet, _ = await self._devices()

        await outlet.turn_on()
        assert router.last_params == {
            "ain": "08761 0000434",
            "switchcmd": "setsimpleonoff",
            "onoff": "1",
        }

        await outlet.turn_off()
        assert router.last_params["onoff"] == "0"

    @pytest.mark.asyncio
    async def test_set_level(self) -> None:
        """Test level commands."""
        router, _, lamp = await self._devices()

        await lamp.set_level(128)
        assert router.last_params == {"ain": "13077 0012345-1", "switchcmd": "setlevel", "level": "128"}

        await lamp.set_level_percent(50)
        assert router.last_params["switchcmd"] == "setlevelpercentage"
        assert router.last_params["level"] == "50"

    @pytest.mark.asyncio
    async def test_set_color_temperature(self) -> None:
        """Test a color temperature command."""
        router, _, lamp = await self._devices()

        await lamp.set_color(ColorTemperature(kelvin=4200))

        assert router.last_params == {
            "ain": "13077 0012345-1",
            "switchcmd": "setcolortemperature",
            "temperature": "4200",
            "duration": "0",
        }

    @pytest.mark.asyncio
    async def test_set_unmapped_color(self) -> None:
        """Test a hue/saturation command."""
        router, _, lamp = await self._devices()

        await lamp.set_color(HueSaturation(hue=120, saturation=200))

        assert router.last_params == {
            "ain": "13077 0012345-1",
            "switchcmd": "setunmappedcolor",
            "hue": "120",
            "saturation": "200",
            "duration": "0",
        }

    @pytest.mark.asyncio
    async def test_unsupported_feature(self) -> None:
        """Test commands the device lacks raise before any request."""
        router, outlet, _ = await self._devices()
        count = len(router.requests)

        with pytest.raises(UnsupportedFeatureError):
            await outlet.set_level(10)
        with pytest.raises(UnsupportedFeatureError):
            await outlet.set_color(ColorTemperature(3000))

        assert len(router.requests) == count

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "action",
        [
            lambda lamp: lamp.set_level(256),
            lambda lamp: lamp.set_level(-1),
            lambda lamp: lamp.set_level_percent(101),
            lambda lamp: lamp.set_color(ColorTemperature(2000)),
            lambda lamp: lamp.set_color(ColorTemperature(7000)),
            lambda lamp: lamp.set_color(HueSaturation(360, 10)),
            lambda lamp: lamp.set_color(HueSaturation(10, 256)),
        ],
    )
    async def test_out_of_range(self, action) -> None:
        """Test out-of-range values raise ValueError."""
        _, _, lamp = await self._devices()
        with pytest.raises(ValueError, match="must be between"):
            await action(lamp)


class TestSmartDevice:
    """Tests for single device lookup."""

    @pytest.mark.asyncio
    async def test_found(self) -> None:
        """Test a known AIN returns the device."""
        router, client = make_client({
            "getdeviceinfos": lambda request: xml_response(DECT_500_XML),
        })

        device = await smart_device(client, "13077 0012345-1")

        assert isinstance(device, SmartHomeDevice)
        assert device.name == "Lampe"
        assert router.last_params == {"ain": "13077 0012345-1", "switchcmd": "getdeviceinfos"}

    @pytest.mark.asyncio
    async def test_unknown_ain(self) -> None:
        """Test a 400 answer means the device does not exist."""
        _, client = make_client({
            "getdeviceinfos": lambda request: httpx.Response(400, text=""),
        })

        with pytest.raises(DeviceNotFoundError) as exc_info:
            await smart_device(client, "nope")
        assert exc_info.value.status == 400

    @pytest.mark.asyncio
    async def test_other_failures_propagate(self) -> None:
        """Test non-400 failures are not turned into DeviceNotFoundError."""
        _, client = make_client({
            "getdeviceinfos": lambda request: httpx.Response(403, text="forbidden"),
        })

        with pytest.raises(RequestFailedError) as exc_info:
            await smart_device(client, "x")
        assert not isinstance(exc_info.value, DeviceNotFoundError)

    @pytest.mark.asyncio
    async def test_group(self) -> None:
        """Test a group AIN is reported as not found."""
        _, client = make_client({
            "getdeviceinfos": lambda request: xml_response(
                '<group identifier="grp1" id="900"><name>Wohnzimmer</name></group>'
            ),
        })

        with pytest.raises(DeviceNotFoundError, match="group"):
            await smart_device(client, "grp1")

    @pytest.mark.asyncio
    async def test_refresh(self) -> None:
        """Test refresh replaces the device data."""
        state = {"name": "Lampe"}

        def answer(request: OutgoingRequest) -> httpx.Response:
            return xml_response(DECT_500_XML.replace("<name>Lampe</name>", f"<name>{state['name']}</name>"))

        _, client = make_client({"getdeviceinfos": answer})
        device = await smart_device(client, "13077 0012345-1")

        state["name"] = "Stehlampe"
        assert await device.refresh() is device
        assert device.name == "Stehlampe"


class TestSwitches:
    """Tests for the switch helpers."""

    @pytest.mark.asyncio
    async def test_list_switches(self) -> None:
        """Test the comma separated AIN list is split."""
        _, client = make_client({
            "getswitchlist": lambda request: text_response("087610000434,087610000435\n"),
        })
        assert await list_switches(client) == ["087610000434", "087610000435"]

    @pytest.mark.asyncio
    async def test_list_switches_empty(self) -> None:
        """Test an empty answer yields no switches."""
        _, client = make_client({"getswitchlist": lambda request: text_response("\n")})
        assert await list_switches(client) == []

    @pytest.mark.asyncio
    async def test_switch_on_off(self) -> None:
        """Test on/off send the AIN and validate the answer."""
        router, client = make_client({
            "setswitchon": lambda request: text_response("1\n"),
            "setswitchoff": lambda request: text_response("0\n"),
        })

        await switch_on(client, "087610000434")
        assert router.last_params == {"ain": "087610000434", "switchcmd": "setswitchon"}
        await switch_off(client, "087610000434")
        assert router.last_params["switchcmd"] == "setswitchoff"

    @pytest.mark.asyncio
    async def test_toggle(self) -> None:
        """Test toggle returns the new state."""
        _, client = make_client({"setswitchtoggle": lambda request: text_response("0\n")})
        assert await toggle_switch(client, "087610000434") is False

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body,expected", [("1\n", True), ("0\n", False), ("inval\n", None)])
    async def test_switch_state(self, body: str, expected) -> None:
        """Test the switch state, including the unknown state."""
        _, client = make_client({"getswitchstate": lambda request: text_response(body)})
        assert await switch_state(client, "087610000434") is expected

    @pytest.mark.asyncio
    async def test_switch_present(self) -> None:
        """Test the presence query."""
        _, client = make_client({"getswitchpresent": lambda request: text_response("1\n")})
        assert await switch_present(client, "087610000434") is True
