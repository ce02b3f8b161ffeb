"""Mock Hue bridge (v1 REST API) for manual and integration testing."""

from __future__ import annotations

import copy
from datetime import datetime
from typing import Any

from fastapi import FastAPI, Request
from pydantic import BaseModel


MOCK_USERNAME = "mockuser0123456789"

# Mock data
FAKE_LIGHTS: dict[str, dict[str, Any]] = {
    "1": {
        "name": "Kitchen",
        "state": {"on": False, "bri": 120, "alert": "none", "reachable": True},
        "type": "Dimmable light",
        "modelid": "LWB010",
        "manufacturername": "Signify Netherlands B.V.",
        "productname": "Hue white lamp",
        "uniqueid": "00:17:88:01:04:aa:bb:01-0b",
        "swversion": "1.88.1",
        "swconfigid": "7A1C2D3E",
    },
    "2": {
        "name": "Living Room",
        "state": {
            "on": True,
            "bri": 254,
            "xy": [0.3227, 0.329],
            "colormode": "xy",
            "reachable": True,
        },
        "type": "Extended color light",
        "modelid": "LCT015",
        "manufacturername": "Signify Netherlands B.V.",
        "productname": "Hue color lamp",
        "uniqueid": "00:17:88:01:04:aa:bb:02-0b",
        "swversion": "1.88.1",
        "swconfigid": "3C8A2F1B",
    },
    "4": {
        "name": "Office Strip",
        "state": {"on": False, "bri": 1, "xy": [0.167, 0.04], "reachable": False},
        "type": "Color light",
        "modelid": "LST002",
        "manufacturername": "Signify Netherlands B.V.",
        "productname": "Hue lightstrip plus",
        "uniqueid": "00:17:88:01:04:aa:bb:04-0b",
        "swversion": "1.88.1",
        "swconfigid": "5B6C7D8E",
    },
}

FAKE_CONFIG: dict[str, Any] = {
    "name": "Mock bridge",
    "bridgeid": "001788FFFE000000",
    "modelid": "BSB002",
    "zigbeechannel": 15,
    "factorynew": False,
    "replacesbridgeid": None,
    "datastoreversion": "98",
    "starterkitid": "",
    "apiversion": "1.50.0",
    "swversion": "1950207110",
    "ipaddress": "127.0.0.1",
    "mac": "00:17:88:00:00:00",
    "netmask": "255.255.255.0",
    "gateway": "127.0.0.1",
    "dhcp": True,
    "proxyaddress": "none",
    "proxyport": 0,
    "linkbutton": True,
    "UTC": "2026-10-18T10:00:00",
    "localtime": "2026-10-18T12:00:00",
    "timezone": "Europe/Amsterdam",
    "internetservices": {"internet": "connected", "remoteaccess": "connected"},
    "swupdate2": {"checkforupdate": False, "bridge": {"state": "noupdates"}},
    "portalstate": {"signedon": True, "incoming": False, "outgoing": True},
    "whitelist": {
        MOCK_USERNAME: {
            "name": "huelight#mock",
            "create date": "2026-01-01T09:00:00",
            "last use date": "2026-10-18T10:00:00",
        },
    },
}

lights = copy.deepcopy(FAKE_LIGHTS)
config = copy.deepcopy(FAKE_CONFIG)

# Counter for generating usernames
next_user_id = 1


class NewUser(BaseModel):
    devicetype: str


def hue_error(error_type: int, address: str, description: str) -> list[dict[str, Any]]:
    """Hue reports errors with HTTP 200 and an error entry."""
    return [{"error": {"type": error_type, "address": address, "description": description}}]


def unauthorized(username: str, address: str) -> list[dict[str, Any]] | None:
    if username not in config["whitelist"]:
        return hue_error(1, address, "unauthorized user")
    return None


# Create FastAPI app
app = FastAPI(title="Mock Hue Bridge API")


@app.get("/discovery")
def discovery():
    """Stand-in for https://discovery.meethue.com/."""
    return [{"id": config["bridgeid"].lower(), "internalipaddress": "127.0.0.1", "port": 8000}]


@app.post("/api")
def create_user(user: NewUser):
    """Register an application; the mock link button is always pressed."""
    global next_user_id
    if not config["linkbutton"]:
        return hue_error(101, "", "link button not pressed")

    username = f"mockuser{next_user_id:010d}"
    next_user_id += 1
    now = datetime.utcnow().strftime("%Y-%m-%dT%H:%M:%S")
    config["whitelist"][username] = {
        "name": user.devicetype,
        "create date": now,
        "last use date": now,
    }
    return [{"success": {"username": username}}]


@app.get("/api/{username}/config")
def get_config(username: str):
    return unauthorized(username, "/config") or config


@app.get("/api/{username}/lights")
def list_lights(username: str):
    return unauthorized(username, "/lights") or lights


@app.get("/api/{username}/lights/{light_id}")
def get_light(username: str, light_id: str):
    address = f"/lights/{light_id}"
    error = unauthorized(username, address)
    if error:
        return error
    if light_id not in lights:
        return hue_error(3, address, f"resource, {address}, not available")
    return lights[light_id]


@app.put("/api/{username}/lights/{light_id}/state")
async def set_light_state(username: str, light_id: str, request: Request):
    address = f"/lights/{light_id}/state"
    error = unauthorized(username, address)
    if error:
        return error
    if light_id not in lights:
        return hue_error(3, f"/lights/{light_id}", f"resource, /lights/{light_id}, not available")

    update = await request.json()
    lights[light_id]["state"].update(update)
    return [{"success": {f"{address}/{key}": value}} for key, value in update.items()]


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="127.0.0.1", port=8000)
