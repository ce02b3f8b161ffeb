"""Shared fixtures: an in-memory Hue bridge behind httpx.MockTransport."""

from __future__ import annotations

import copy
import json
from typing import Any

import httpx
import pytest

from huelight import cli, prompts
from huelight.client import BridgeClient


USERNAME = "abcdef0123456789"
BRIDGE_HOST = "192.168.1.10"

FAKE_LIGHTS: dict[str, dict[str, Any]] = {
    "3": {
        "name": "Living Room",
        "state": {"on": True, "bri": 254, "xy": [0.3227, 0.329], "reachable": True},
        "type": "Extended color light",
        "modelid": "LCT015",
        "manufacturername": "Signify Netherlands B.V.",
        "productname": "Hue color lamp",
        "uniqueid": "00:17:88:01:04:aa:bb:03-0b",
        "swversion": "1.88.1",
        "swconfigid": "3C8A2F1B",
    },
    "1": {
        "name": "Kitchen",
        "state": {"on": False, "bri": 120, "reachable": True},
        "type": "Dimmable light",
        "modelid": "LWB010",
        "manufacturername": "Signify Netherlands B.V.",
        "productname": "Hue white lamp",
        "uniqueid": "00:17:88:01:04:aa:bb:01-0b",
        "swversion": "1.88.1",
        "swconfigid": "7A1C2D3E",
    },
    "2": {
        "name": "Hallway",
        "state": {"on": False, "bri": 1, "reachable": False},
        "type": "Dimmable light",
        "modelid": "LWB010",
        "manufacturername": "Signify Netherlands B.V.",
        "productname": "Hue white lamp",
        "uniqueid": "00:17:88:01:04:aa:bb:02-0b",
        "swversion": "1.88.1",
        "swconfigid": "7A1C2D3E",
    },
}

FAKE_CONFIG: dict[str, Any] = {
    "name": "Philips hue",
    "bridgeid": "001788FFFE4A1B2C",
    "modelid": "BSB002",
    "zigbeechannel": 25,
    "factorynew": False,
    "replacesbridgeid": None,
    "datastoreversion": "98",
    "starterkitid": "",
    "apiversion": "1.50.0",
    "swversion": "1950207110",
    "ipaddress": BRIDGE_HOST,
    "mac": "00:17:88:4a:1b:2c",
    "netmask": "255.255.255.0",
    "gateway": "192.168.1.1",
    "dhcp": True,
    "proxyaddress": "none",
    "proxyport": 0,
    "linkbutton": False,
    "UTC": "2026-10-18T10:00:00",
    "localtime": "2026-10-18T12:00:00",
    "timezone": "Europe/Amsterdam",
    "internetservices": {"internet": "connected", "remoteaccess": "connected"},
    "swupdate2": {"checkforupdate": False, "bridge": {"state": "noupdates"}},
    "portalstate": {"signedon": True, "incoming": False},
    "whitelist": {
        USERNAME: {
            "name": "huelight#laptop",
            "create date": "2026-01-01T09:00:00",
            "last use date": "2026-10-18T10:00:00",
        },
        "zyx987": {
            "name": "Hue 4#iPhone",
            "create date": "2025-05-05T08:00:00",
            "last use date": "2026-10-17T21:00:00",
        },
    },
}


def _error(error_type: int, address: str, description: str) -> httpx.Response:
    return httpx.Response(
        200,
        json=[{"error": {"type": error_type, "address": address, "description": description}}],
    )


class FakeBridge:
    """Just enough of the Hue v1 API to drive the client."""

    def __init__(self) -> None:
        self.lights = copy.deepcopy(FAKE_LIGHTS)
        self.config = copy.deepcopy(FAKE_CONFIG)
        self.link_button = True
        self.new_username = "newuser0123456789"
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        parts = request.url.path.strip("/").split("/")

        if request.method == "POST" and parts == ["api"]:
            if not self.link_button:
                return _error(101, "", "link button not pressed")
            body = json.loads(request.content)
            self.config["whitelist"][self.new_username] = {
                "name": body["devicetype"],
                "create date": "2026-10-18T10:05:00",
                "last use date": "2026-10-18T10:05:00",
            }
            return httpx.Response(200, json=[{"success": {"username": self.new_username}}])

        if len(parts) < 3 or parts[0] != "api":
            return httpx.Response(404, text="not found")
        if parts[1] not in self.config["whitelist"]:
            return _error(1, "/" + "/".join(parts[2:]), "unauthorized user")

        resource = parts[2:]
        if resource == ["config"] and request.method == "GET":
            return httpx.Response(200, json=self.config)
        if resource == ["lights"] and request.method == "GET":
            return httpx.Response(200, json=self.lights)
        if resource[0] == "lights" and len(resource) >= 2:
            light = self.lights.get(resource[1])
            if light is None:
                address = f"/lights/{resource[1]}"
                return _error(3, address, f"resource, {address}, not available")
            if len(resource) == 2 and request.method == "GET":
                return httpx.Response(200, json=light)
            if resource[2:] == ["state"] and request.method == "PUT":
                update = json.loads(request.content)
                light["state"].update(update)
                return httpx.Response(
                    200,
                    json=[
                        {"success": {f"/lights/{resource[1]}/state/{key}": value}}
                        for key, value in update.items()
                    ],
                )
        return httpx.Response(404, text="not found")

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def client(self, username: str = USERNAME) -> BridgeClient:
        return BridgeClient(BRIDGE_HOST, username=username, transport=self.transport)

    def state_updates(self) -> list[tuple[str, dict[str, Any]]]:
        return [
            (request.url.path, json.loads(request.content))
            for request in self.requests
            if request.method == "PUT"
        ]


@pytest.fixture
def bridge() -> FakeBridge:
    return FakeBridge()


@pytest.fixture
def cli_bridge(monkeypatch, bridge):
    """Route the CLI's bridge client to the fake bridge."""

    def build_client(config):
        if not config.bridge:
            raise cli.CliError("no bridge set")
        return BridgeClient(config.bridge, username=config.username, transport=bridge.transport)

    monkeypatch.setattr(cli, "_build_client", build_client)
    return bridge


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(f"bridge: {BRIDGE_HOST}\nusername: {USERNAME}\napplication: huelight\n")
    return path


class Answers:
    """Scripted replies for interactive prompts.

    An exception in ``replies`` is raised instead of answered, and running
    out of replies behaves like a closed stdin.
    """

    def __init__(self) -> None:
        self.replies: list = []
        self.asked: list[str] = []

    def __call__(self, message: str) -> str:
        self.asked.append(message)
        if not self.replies:
            raise EOFError
        reply = self.replies.pop(0)
        if isinstance(reply, BaseException):
            raise reply
        return reply


@pytest.fixture
def answers(monkeypatch) -> Answers:
    scripted = Answers()
    monkeypatch.setattr(prompts, "read_line", scripted)
    return scripted


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in ("CONFIG", "BRIDGE", "USERNAME", "OUTPUT"):
        monkeypatch.delenv(f"HUELIGHT_{name}", raising=False)
