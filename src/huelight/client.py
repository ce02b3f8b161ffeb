"""Hue bridge API client for huelight."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from typing import Any, Optional

import httpx


DISCOVERY_URL = "https://discovery.meethue.com/"
DEFAULT_TIMEOUT = 10.0

# Hue API error type returned by POST /api before the link button is pressed
LINK_BUTTON_NOT_PRESSED = 101

log = logging.getLogger("huelight")


class BridgeError(Exception):
    """Base class for failures talking to a bridge."""


class BridgeConnectionError(BridgeError):
    """Raised when the bridge cannot be reached (timeouts, refused connections)."""


class BridgeNotFoundError(BridgeError):
    """Raised when discovery finds no bridge on the network."""


class BridgeApiError(BridgeError):
    """Raised when the bridge answers with an HTTP error or a Hue error payload."""

    def __init__(
        self,
        description: str,
        error_type: Optional[int] = None,
        address: Optional[str] = None,
    ):
        super().__init__(description)
        self.description = description
        self.error_type = error_type
        self.address = address

    @classmethod
    def from_payload(cls, error: dict[str, Any]) -> BridgeApiError:
        return cls(
            description=str(error.get("description", "unknown error")),
            error_type=error.get("type"),
            address=error.get("address"),
        )

    def __str__(self) -> str:
        if self.error_type is None:
            return self.description
        return f"{self.description} (type {self.error_type})"


@dataclass(frozen=True)
class LightState:
    on: bool = False
    bri: Optional[int] = None
    xy: Optional[tuple[float, float]] = None
    reachable: Optional[bool] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LightState:
        xy = data.get("xy")
        return cls(
            on=bool(data.get("on", False)),
            bri=data.get("bri"),
            xy=(float(xy[0]), float(xy[1])) if xy else None,
            reachable=data.get("reachable"),
        )


@dataclass(frozen=True)
class Light:
    """A lamp known to the bridge."""

    id: int
    name: str
    state: LightState = field(default_factory=LightState)
    type: str = ""
    model_id: str = ""
    manufacturer_name: str = ""
    unique_id: str = ""
    sw_version: str = ""
    sw_config_id: str = ""
    product_name: str = ""

    @property
    def is_on(self) -> bool:
        return self.state.on

    @classmethod
    def from_dict(cls, light_id: int | str, data: dict[str, Any]) -> Light:
        """Create from the JSON object the bridge returns for one light."""
        return cls(
            id=int(light_id),
            name=data.get("name", ""),
            state=LightState.from_dict(data.get("state", {})),
            type=data.get("type", ""),
            model_id=data.get("modelid", ""),
            manufacturer_name=data.get("manufacturername", ""),
            unique_id=data.get("uniqueid", ""),
            sw_version=data.get("swversion", ""),
            sw_config_id=data.get("swconfigid", ""),
            product_name=data.get("productname", ""),
        )

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        if self.state.xy is not None:
            data["state"]["xy"] = list(self.state.xy)
        return data


@dataclass(frozen=True)
class User:
    """A whitelist entry (an application registered with the bridge)."""

    name: str
    username: str
    create_date: str = ""
    last_use_date: str = ""
    client_key: str = ""

    @classmethod
    def from_whitelist(cls, username: str, entry: dict[str, Any]) -> User:
        return cls(
            name=entry.get("name", ""),
            username=username,
            create_date=entry.get("create date", ""),
            last_use_date=entry.get("last use date", ""),
            client_key=entry.get("clientkey", ""),
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class DiscoveredBridge:
    host: str
    id: str = ""
    port: Optional[int] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DiscoveredBridge:
        return cls(
            host=data.get("internalipaddress", ""),
            id=data.get("id", ""),
            port=data.get("port"),
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class BridgeConfig:
    """Bridge configuration as returned by ``GET /api/<username>/config``."""

    name: str = ""
    bridge_id: str = ""
    model_id: str = ""
    zigbee_channel: Optional[int] = None
    factory_new: Optional[bool] = None
    replaces_bridge_id: Optional[str] = None
    datastore_version: str = ""
    starterkit_id: str = ""
    api_version: str = ""
    sw_version: str = ""
    ip_address: str = ""
    mac: str = ""
    netmask: str = ""
    gateway: str = ""
    dhcp: Optional[bool] = None
    proxy_address: str = ""
    proxy_port: Optional[int] = None
    link_button: Optional[bool] = None
    utc: str = ""
    local_time: str = ""
    time_zone: str = ""
    internet_services: dict[str, Any] = field(default_factory=dict)
    sw_update2: dict[str, Any] = field(default_factory=dict)
    portal_state: dict[str, Any] = field(default_factory=dict)
    whitelist: list[User] = field(default_factory=list)
    raw: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> BridgeConfig:
        whitelist = [
            User.from_whitelist(username, entry)
            for username, entry in (data.get("whitelist") or {}).items()
        ]
        return cls(
            name=data.get("name", ""),
            bridge_id=data.get("bridgeid", ""),
            model_id=data.get("modelid", ""),
            zigbee_channel=data.get("zigbeechannel"),
            factory_new=data.get("factorynew"),
            replaces_bridge_id=data.get("replacesbridgeid"),
            datastore_version=data.get("datastoreversion", ""),
            starterkit_id=data.get("starterkitid", ""),
            api_version=data.get("apiversion", ""),
            sw_version=data.get("swversion", ""),
            ip_address=data.get("ipaddress", ""),
            mac=data.get("mac", ""),
            netmask=data.get("netmask", ""),
            gateway=data.get("gateway", ""),
            dhcp=data.get("dhcp"),
            proxy_address=data.get("proxyaddress", ""),
            proxy_port=data.get("proxyport"),
            link_button=data.get("linkbutton"),
            utc=data.get("UTC", ""),
            local_time=data.get("localtime", ""),
            time_zone=data.get("timezone", ""),
            internet_services=data.get("internetservices") or {},
            sw_update2=data.get("swupdate2") or {},
            portal_state=data.get("portalstate") or {},
            whitelist=whitelist,
            raw=data,
        )


def _check_payload(data: Any) -> Any:
    """Raise for Hue error entries, which arrive with HTTP 200."""
    if isinstance(data, list):
        for entry in data:
            if isinstance(entry, dict) and "error" in entry:
                raise BridgeApiError.from_payload(entry["error"])
    return data


def _handle_response(response: httpx.Response) -> Any:
    log.debug(
        "%s %s -> %s",
        response.request.method,
        response.request.url,
        response.status_code,
    )
    try:
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        raise BridgeApiError(
            f"Request failed ({response.status_code}): {response.text or response.reason_phrase}"
        ) from exc
    if not response.content:
        return None
    try:
        data = response.json()
    except ValueError as exc:
        raise BridgeApiError("Bridge returned a response that is not JSON") from exc
    return _check_payload(data)


def discover_all(
    timeout: float = DEFAULT_TIMEOUT,
    transport: Optional[httpx.BaseTransport] = None,
) -> list[DiscoveredBridge]:
    """Find bridges on the local network through the Hue discovery service."""
    log.debug("Discovering bridges via %s", DISCOVERY_URL)
    try:
        with httpx.Client(timeout=timeout, transport=transport, follow_redirects=True) as client:
            data = _handle_response(client.get(DISCOVERY_URL))
    except httpx.RequestError as exc:
        raise BridgeConnectionError(f"Bridge discovery failed: {exc}") from exc
    bridges = [DiscoveredBridge.from_dict(entry) for entry in data or []]
    log.debug("Discovered %d bridges", len(bridges))
    return bridges


def discover(
    timeout: float = DEFAULT_TIMEOUT,
    transport: Optional[httpx.BaseTransport] = None,
) -> DiscoveredBridge:
    """Return the first bridge found on the network."""
    bridges = discover_all(timeout=timeout, transport=transport)
    if not bridges:
        raise BridgeNotFoundError("No Hue bridges found on network")
    return bridges[0]


class BridgeClient:
    """Client for interacting with the Hue bridge REST API."""

    def __init__(
        self,
        host: str,
        username: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """
        Initialize the bridge client.

        Args:
            host: Bridge IP address or hostname (e.g., 192.168.1.10)
            username: Bridge-generated username used as the API key
            timeout: Request timeout in seconds
            transport: Optional httpx transport, mainly for tests
        """
        self.host = host
        self.base_url = (host if "://" in host else f"http://{host}").rstrip("/")
        self.username = username
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.Client] = None

    @property
    def client(self) -> httpx.Client:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.Client(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
                follow_redirects=True,
            )
        return self._client

    def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            self._client.close()
            self._client = None

    def __enter__(self) -> BridgeClient:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def login(self, username: Optional[str]) -> BridgeClient:
        """Bind the client to a bridge username."""
        self.username = username
        return self

    def _user_path(self, path: str = "") -> str:
        if not self.username:
            raise BridgeError("No username set, use --username or add one to the config file")
        return f"/api/{self.username}{path}"

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        try:
            response = self.client.request(method, path, **kwargs)
        except httpx.RequestError as exc:
            raise BridgeConnectionError(f"Request to bridge {self.host} failed: {exc}") from exc
        return _handle_response(response)

    # Light endpoints

    def list_lights(self) -> list[Light]:
        """List all lights in the order the bridge returns them."""
        data = self._request("GET", self._user_path("/lights")) or {}
        return [Light.from_dict(light_id, entry) for light_id, entry in data.items()]

    def get_light(self, light_id: int) -> Light:
        """Get a specific light by ID."""
        data = self._request("GET", self._user_path(f"/lights/{light_id}")) or {}
        return Light.from_dict(light_id, data)

    def set_light_state(self, light_id: int, state: dict[str, Any]) -> list[dict[str, Any]]:
        """Send a state update to a light and return the bridge's result entries."""
        log.debug("Setting light %s state=%s", light_id, state)
        return self._request("PUT", self._user_path(f"/lights/{light_id}/state"), json=state) or []

    def turn_on(self, light_id: int) -> list[dict[str, Any]]:
        return self.set_light_state(light_id, {"on": True})

    def turn_off(self, light_id: int) -> list[dict[str, Any]]:
        return self.set_light_state(light_id, {"on": False})

    # Bridge and user endpoints

    def get_config(self) -> BridgeConfig:
        """Get the bridge configuration."""
        data = self._request("GET", self._user_path("/config")) or {}
        return BridgeConfig.from_dict(data)

    def list_users(self) -> list[User]:
        """List whitelist entries registered on the bridge."""
        return self.get_config().whitelist

    def create_user(self, devicetype: str) -> str:
        """
        Register a new application with the bridge.

        The bridge link button must have been pressed shortly before.

        Args:
            devicetype: Application name to register

        Returns:
            The generated username
        """
        data = self._request("POST", "/api", json={"devicetype": devicetype}) or []
        for entry in data:
            success = entry.get("success") if isinstance(entry, dict) else None
            if success and "username" in success:
                return success["username"]
        raise BridgeApiError("Bridge did not return a username")
