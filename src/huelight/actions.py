"""Light actions: validation of --action/--value and dispatch to the bridge."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Mapping, Optional

if TYPE_CHECKING:
    from .client import BridgeClient
    from .registry import LightRegistry

log = logging.getLogger("huelight")

# Maximum brightness accepted by the bridge
MAX_BRIGHTNESS = 254


class Action(str, Enum):
    ON = "on"
    OFF = "off"
    STATUS = "status"
    HUE = "hue"
    BRIGHTNESS = "brightness"


VALID_ACTIONS: Mapping[Action, str] = MappingProxyType(
    {
        Action.ON: "Turn light on",
        Action.OFF: "Turn light off",
        Action.STATUS: "Show current state",
        Action.HUE: "Set colour",
        Action.BRIGHTNESS: "Set brightness",
    }
)

# CIE xy coordinates in the bridge colour space
COLOURS: Mapping[str, tuple[float, float]] = MappingProxyType(
    {
        "red": (0.675, 0.322),
        "green": (0.4091, 0.518),
        "blue": (0.167, 0.04),
        "white": (0.3227, 0.3290),
    }
)


class ActionError(Exception):
    """Raised when an action cannot be carried out as requested."""


class InvalidActionError(ActionError):
    """Raised for an action name outside VALID_ACTIONS."""

    def __init__(self, name: str):
        super().__init__(f'"--action {name}" is not valid')
        self.name = name


class ActionValueError(ActionError):
    """Raised when --value is missing or wrong for the chosen action."""


class LightNotFoundError(ActionError):
    """Raised when the target light is not known to the bridge."""


def check_action(name: str) -> bool:
    """Return True if ``name`` is a valid action, ignoring case."""
    return name.strip().lower() in {action.value for action in Action}


def parse_action(name: str) -> Action:
    if not check_action(name):
        raise InvalidActionError(name)
    return Action(name.strip().lower())


def colour_xy(name: str) -> tuple[float, float]:
    """Look up a palette colour, ignoring case."""
    try:
        return COLOURS[name.strip().lower()]
    except KeyError:
        valid = ", ".join(sorted(COLOURS))
        raise ActionValueError(f'value "{name}" is not valid, choose one of: {valid}') from None


def hue_state(colour: str) -> dict[str, Any]:
    x, y = colour_xy(colour)
    return {"on": True, "xy": [x, y]}


def scale_brightness(percent: int) -> int:
    """Scale a 0-100 percentage to the bridge's 0-254 range."""
    if percent < 0 or percent > 100:
        raise ActionValueError("Valid brightness values are 0 - 100 inclusive")
    # round() takes halves to the even neighbour: 25% is 64 and 75% is 190
    return round(percent * MAX_BRIGHTNESS / 100)


def parse_brightness(value: str) -> int:
    try:
        percent = int(value.strip())
    except ValueError:
        raise ActionValueError(f'brightness value "{value}" is not valid') from None
    return percent


def brightness_state(percent: int) -> dict[str, Any]:
    return {"on": True, "bri": scale_brightness(percent)}


@dataclass(frozen=True)
class ActionRequest:
    """A validated action, with the state update prepared where one applies."""

    action: Action
    value: Optional[str] = None
    state: Optional[dict[str, Any]] = None


def build_request(name: str, value: Optional[str] = None) -> ActionRequest:
    """
    Validate an action name and its value without touching the network.

    Raises:
        InvalidActionError: unknown action name
        ActionValueError: missing or invalid value for hue/brightness
    """
    action = parse_action(name)

    if action is Action.HUE:
        if not value:
            raise ActionValueError('you must also use --value when using action "hue"')
        return ActionRequest(action=action, value=value, state=hue_state(value))

    if action is Action.BRIGHTNESS:
        if not value:
            raise ActionValueError('you must also use --value when using action "brightness"')
        return ActionRequest(
            action=action,
            value=value,
            state=brightness_state(parse_brightness(value)),
        )

    return ActionRequest(action=action, value=value)


@dataclass
class RunContext:
    """State for one invocation: the bridge, its lights and what to do."""

    client: BridgeClient
    registry: LightRegistry
    request: Optional[ActionRequest] = None
    light_id: Optional[int] = None
    output: str = "table"


@dataclass(frozen=True)
class ActionResult:
    action: Action
    light_id: int
    light_name: str = ""
    is_on: Optional[bool] = None
    state: Optional[dict[str, Any]] = None
    response: list[dict[str, Any]] = field(default_factory=list)
    # colour name or brightness percentage as given with --value
    value: Optional[str] = None

    @property
    def message(self) -> str:
        return f'Light: "{self.light_name}" is {"on" if self.is_on else "off"}'


def dispatch(context: RunContext) -> ActionResult:
    """
    Run the requested action against the selected light.

    Bridge errors propagate to the caller unchanged.

    Raises:
        ActionError: no action or light selected, or light not loaded
    """
    request = context.request
    if request is None:
        raise ActionError("No action selected")
    if context.light_id is None:
        raise ActionError("No light selected, use --light")
    light = context.registry.get(context.light_id)
    if light is None:
        raise LightNotFoundError("light not found")

    log.debug("Doing action %s on light %d", request.action.value, light.id)

    if request.action is Action.ON:
        response = context.client.turn_on(light.id)
        return ActionResult(request.action, light.id, light.name, True, {"on": True}, response)

    if request.action is Action.OFF:
        response = context.client.turn_off(light.id)
        return ActionResult(request.action, light.id, light.name, False, {"on": False}, response)

    if request.action is Action.STATUS:
        current = context.client.get_light(light.id)
        return ActionResult(request.action, light.id, current.name, current.is_on)

    # hue and brightness carry a state prepared by build_request
    assert request.state is not None
    response = context.client.set_light_state(light.id, request.state)
    return ActionResult(
        request.action, light.id, light.name, True, request.state, response, request.value
    )
