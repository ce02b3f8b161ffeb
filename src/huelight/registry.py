"""Once-per-run cache of the lights known to the bridge."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterator, Optional

from .client import BridgeError, Light

if TYPE_CHECKING:
    from .client import BridgeClient

log = logging.getLogger("huelight")


class RegistryError(Exception):
    """Raised when lights cannot be loaded from the bridge."""


class LightRegistry:
    """
    Lights fetched once from the bridge, sorted by ID.

    Lookups never touch the network; call ``load()`` first.
    """

    def __init__(self, client: BridgeClient):
        self.client = client
        self._lights: list[Light] = []

    @property
    def lights(self) -> list[Light]:
        return list(self._lights)

    @property
    def is_loaded(self) -> bool:
        return bool(self._lights)

    def __len__(self) -> int:
        return len(self._lights)

    def __iter__(self) -> Iterator[Light]:
        return iter(self._lights)

    def load(self) -> list[Light]:
        """Fetch all lights from the bridge and sort them by ID.

        Raises:
            RegistryError: if the bridge call fails or returns no lights
        """
        try:
            lights = self.client.list_lights()
        except BridgeError as exc:
            raise RegistryError(f"Could not load lights from bridge: {exc}") from exc

        if not lights:
            raise RegistryError("No lights found on bridge")

        self._lights = sorted(lights, key=lambda light: light.id)
        log.debug("Loaded %d lights: %s", len(self._lights), [light.id for light in self._lights])
        return self.lights

    def get(self, light_id: int) -> Optional[Light]:
        for light in self._lights:
            if light.id == light_id:
                return light
        return None

    def contains(self, light_id: int) -> bool:
        return self.get(light_id) is not None

    def resolve(self, token: str) -> Optional[int]:
        """
        Resolve a light ID or name to a light ID.

        A token that parses as an integer is treated as an ID and must
        match a loaded light. Anything else is compared against light
        names, ignoring case.

        Returns:
            The light ID, or None when nothing matches
        """
        token = token.strip()
        try:
            light_id = int(token)
        except ValueError:
            pass
        else:
            return light_id if self.contains(light_id) else None

        wanted = token.casefold()
        for light in self._lights:
            if light.name.casefold() == wanted:
                return light.id
        return None
