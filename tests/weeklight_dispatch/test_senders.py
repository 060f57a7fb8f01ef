"""Tests for Hue bridge and logging device senders."""

import json
import logging

import httpx
import pytest

from weeklight_dispatch.senders import HueBridgeSender, LoggingDeviceSender, build_light_state


class FakeBridge:
    """httpx.MockTransport handler imitating a Hue bridge."""

    def __init__(self, authorized: bool = True):
        self.authorized = authorized
        self.puts: list[tuple[str, dict]] = []
        self.errors_for: set[str] = set()
        self.status_for: dict[str, int] = {}
        self.unreachable = False

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if self.unreachable:
            raise httpx.ConnectError("no route to host", request=request)

        path = request.url.path
        if request.method == "GET" and path == "/api/secret/config":
            body = {"name": "Philips hue", "bridgeid": "001788FFFE000000"}
            if self.authorized:
                body["whitelist"] = {"secret": {"name": "weeklight"}}
            return httpx.Response(200, json=body)

        if request.method == "PUT" and path.startswith("/api/secret/lights/"):
            light_id = path.split("/")[4]
            if light_id in self.status_for:
                return httpx.Response(self.status_for[light_id])
            body = json.loads(request.content)
            self.puts.append((light_id, body))
            if light_id in self.errors_for:
                return httpx.Response(200, json=[
                    {"error": {"type": 3, "address": f"/lights/{light_id}", "description": "resource not available"}}
                ])
            return httpx.Response(200, json=[
                {"success": {f"/lights/{light_id}/state/{k}": v}} for k, v in body.items()
            ])

        return httpx.Response(404)


@pytest.fixture
def bridge() -> FakeBridge:
    return FakeBridge()


@pytest.fixture
def sender(bridge) -> HueBridgeSender:
    client = httpx.AsyncClient(transport=httpx.MockTransport(bridge), base_url="http://bridge")
    return HueBridgeSender(host="bridge", api_key="secret", http_client=client)


class TestBuildLightState:

    def test_all_fields(self):
        assert build_light_state(True, 200, 370, None) == {"on": True, "bri": 200, "ct": 370}

    def test_none_left_out(self):
        assert build_light_state() == {}

    def test_off(self):
        assert build_light_state(on=False) == {"on": False}

    def test_increment(self):
        assert build_light_state(brightness_delta=1) == {"bri_inc": 1}


class TestHueBridgeSender:
    """Tests for HueBridgeSender against a mock bridge."""

    @pytest.mark.asyncio
    async def test_connect(self, sender):
        assert await sender.connect() is True
        assert sender.is_connected

    @pytest.mark.asyncio
    async def test_connect_rejected_key(self, bridge, sender):
        bridge.authorized = False

        assert await sender.connect() is False
        assert not sender.is_connected

    @pytest.mark.asyncio
    async def test_connect_unreachable(self, bridge, sender):
        bridge.unreachable = True

        assert await sender.connect() is False

    @pytest.mark.asyncio
    async def test_connect_not_configured(self):
        sender = HueBridgeSender(host=None, api_key="secret")

        assert await sender.connect() is False

    @pytest.mark.asyncio
    async def test_send_puts_each_light(self, bridge, sender):
        await sender.connect()

        ok = await sender.send(["1", "2"], on=True, brightness=1, color_temperature=370)

        assert ok is True
        assert bridge.puts == [
            ("1", {"on": True, "bri": 1, "ct": 370}),
            ("2", {"on": True, "bri": 1, "ct": 370}),
        ]

    @pytest.mark.asyncio
    async def test_send_increment(self, bridge, sender):
        await sender.connect()

        await sender.send(["3"], brightness_delta=1)

        assert bridge.puts == [("3", {"bri_inc": 1})]

    @pytest.mark.asyncio
    async def test_send_before_connect(self, bridge, sender):
        assert await sender.send(["1"], on=True) is False
        assert bridge.puts == []

    @pytest.mark.asyncio
    async def test_bridge_error_entry(self, bridge, sender):
        await sender.connect()
        bridge.errors_for.add("2")

        ok = await sender.send(["1", "2", "3"], on=False)

        assert ok is False
        # Remaining lights are still sent
        assert [light for light, _ in bridge.puts] == ["1", "2", "3"]

    @pytest.mark.asyncio
    async def test_http_error_status(self, bridge, sender):
        await sender.connect()
        bridge.status_for["1"] = 500

        ok = await sender.send(["1", "2"], on=False)

        assert ok is False
        assert sender.is_connected
        assert [light for light, _ in bridge.puts] == ["2"]

    @pytest.mark.asyncio
    async def test_unreachable_marks_disconnected(self, bridge, sender):
        await sender.connect()
        bridge.unreachable = True

        assert await sender.send(["1"], on=True) is False
        assert not sender.is_connected

    @pytest.mark.asyncio
    async def test_disconnect_keeps_injected_client(self, sender):
        await sender.connect()

        await sender.disconnect()

        assert not sender.is_connected
        assert sender._http is not None


class TestLoggingDeviceSender:
    """Tests for LoggingDeviceSender."""

    @pytest.mark.asyncio
    async def test_writes_json_lines(self, tmp_path):
        path = tmp_path / "out" / "commands.jsonl"
        sender = LoggingDeviceSender(path)

        assert await sender.connect() is True
        await sender.send(["1", "2"], on=True, brightness=1)
        await sender.send(["1"], brightness_delta=1)

        lines = [json.loads(line) for line in path.read_text().splitlines()]
        assert lines == [
            {"lights": ["1", "2"], "state": {"on": True, "bri": 1}},
            {"lights": ["1"], "state": {"bri_inc": 1}},
        ]

    @pytest.mark.asyncio
    async def test_logs_without_path(self, caplog):
        sender = LoggingDeviceSender()
        await sender.connect()

        with caplog.at_level(logging.INFO, logger="weeklight_dispatch.senders"):
            assert await sender.send(["5"], on=False) is True

        assert 'SEND {"lights": ["5"], "state": {"on": false}}' in caplog.text

    @pytest.mark.asyncio
    async def test_connection_state(self):
        sender = LoggingDeviceSender()
        assert not sender.is_connected

        await sender.connect()
        assert sender.is_connected

        await sender.disconnect()
        assert not sender.is_connected


class TestProtocolConformance:

    def test_senders_are_device_interfaces(self):
        from weeklight_core.protocols import DeviceInterface

        assert isinstance(HueBridgeSender(host="bridge", api_key="secret"), DeviceInterface)
        assert isinstance(LoggingDeviceSender(), DeviceInterface)
