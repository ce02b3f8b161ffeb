"""Table, JSON and YAML rendering for huelight."""

from __future__ import annotations

import json
import sys
from typing import TYPE_CHECKING, Any, Iterable, Mapping, Optional

import yaml
from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .actions import VALID_ACTIONS, Action

if TYPE_CHECKING:
    from .actions import ActionResult
    from .client import BridgeConfig, DiscoveredBridge, Light, User


def _console(console: Optional[Console]) -> Console:
    return console if console is not None else Console()


def _table(*columns: str, title: Optional[str] = None) -> Table:
    table = Table(title=title, show_header=True, header_style="bold cyan", box=box.ROUNDED)
    # Wrap long identifiers onto extra lines rather than cutting them short
    for column in columns:
        table.add_column(column, overflow="fold")
    return table


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return escape(str(value))


def print_output(data: Any, output: str) -> None:
    """Print data as YAML or indented JSON."""
    if output == "yaml":
        yaml.safe_dump(data, sys.stdout, sort_keys=False)
    else:
        json.dump(data, sys.stdout, indent=2)
        sys.stdout.write("\n")


def print_actions(console: Optional[Console] = None) -> None:
    table = _table("Action", "Description")
    for action in sorted(VALID_ACTIONS, key=lambda a: a.value):
        table.add_row(action.value, VALID_ACTIONS[action])
    _console(console).print(table)


def print_lights(
    lights: Iterable[Light],
    detailed: bool = False,
    console: Optional[Console] = None,
) -> None:
    """Print lights in the order given; ``detailed`` adds model and firmware columns."""
    if detailed:
        table = _table(
            "ID",
            "State",
            "Name",
            "Type",
            "ModelID",
            "Manufacturer",
            "UniqueID",
            "SwVersion",
            "SwConfigID",
            "ProductName",
        )
    else:
        table = _table("ID", "State", "Name")

    for light in lights:
        state = "[green]on[/]" if light.is_on else "[dim]off[/]"
        row = [str(light.id), state, _cell(light.name)]
        if detailed:
            row += [
                _cell(light.type),
                _cell(light.model_id),
                _cell(light.manufacturer_name),
                _cell(light.unique_id),
                _cell(light.sw_version),
                _cell(light.sw_config_id),
                _cell(light.product_name),
            ]
        table.add_row(*row)
    _console(console).print(table)


def sort_users(users: Iterable[User]) -> list[User]:
    return sorted(users, key=lambda user: user.name)


def print_users(users: Iterable[User], console: Optional[Console] = None) -> None:
    users = sort_users(users)
    table = _table("Name", "Username", "CreateDate", "LastUseDate", "ClientKey")
    for user in users:
        table.add_row(
            _cell(user.name),
            _cell(user.username),
            _cell(user.create_date),
            _cell(user.last_use_date),
            _cell(user.client_key),
        )
    console = _console(console)
    console.print(table)
    console.print(f"\nNumber of users found: {len(users)}")


def print_bridge(
    host: str,
    bridge_id: str,
    user: Optional[str],
    console: Optional[Console] = None,
) -> None:
    table = _table("Host", "BridgeID", "User")
    table.add_row(_cell(host), _cell(bridge_id), _cell(user))
    _console(console).print(table)


def print_discovered_bridges(
    bridges: Iterable[DiscoveredBridge],
    console: Optional[Console] = None,
) -> None:
    bridges = list(bridges)
    table = _table("IP Address", "ID")
    for bridge in bridges:
        table.add_row(_cell(bridge.host), _cell(bridge.id))
    console = _console(console)
    console.print(table)
    console.print(f"\nFound {len(bridges)} bridges")


def _flatten(prefix: str, data: Mapping[str, Any]) -> list[tuple[str, Any]]:
    rows: list[tuple[str, Any]] = []
    for key, value in data.items():
        name = f"{prefix}.{key}"
        if isinstance(value, Mapping):
            rows.extend(_flatten(name, value))
        else:
            rows.append((name, value))
    return rows


def bridge_config_rows(config: BridgeConfig) -> list[tuple[str, Any]]:
    """Setting/value pairs for a bridge configuration, nested sections flattened."""
    rows: list[tuple[str, Any]] = [
        ("Name", config.name),
        ("BridgeID", config.bridge_id),
        ("ModelID", config.model_id),
        ("ZigbeeChannel", config.zigbee_channel),
        ("FactoryNew", config.factory_new),
        ("ReplacesBridgeID", config.replaces_bridge_id),
        ("DatastoreVersion", config.datastore_version),
        ("StarterKitID", config.starterkit_id),
    ]
    rows += _flatten("InternetService", config.internet_services)
    rows += _flatten("SwUpdate2", config.sw_update2)
    rows += [
        ("APIVersion", config.api_version),
        ("SwVersion", config.sw_version),
    ]
    for index, user in enumerate(sort_users(config.whitelist)):
        rows += [
            (f"Whitelist.{index}.Name", user.name),
            (f"Whitelist.{index}.Username", user.username),
            (f"Whitelist.{index}.CreateDate", user.create_date),
            (f"Whitelist.{index}.LastUseDate", user.last_use_date),
            (f"Whitelist.{index}.ClientKey", user.client_key),
        ]
    rows += _flatten("PortalState", config.portal_state)
    rows += [
        ("Network.IPAddress", config.ip_address),
        ("Network.Mac", config.mac),
        ("Network.NetMask", config.netmask),
        ("Network.Gateway", config.gateway),
        ("Network.DHCP", config.dhcp),
        ("Network.ProxyAddress", config.proxy_address),
        ("Network.ProxyPort", config.proxy_port),
        ("LinkButton", config.link_button),
        ("Time.UTC", config.utc),
        ("Time.LocalTime", config.local_time),
        ("Time.TimeZone", config.time_zone),
    ]
    return rows


def print_bridge_config(config: BridgeConfig, console: Optional[Console] = None) -> None:
    table = _table("Setting", "Configuration")
    for setting, value in bridge_config_rows(config):
        table.add_row(setting, _cell(value))
    _console(console).print(table)


def print_config(settings: Mapping[str, Any], console: Optional[Console] = None) -> None:
    table = _table("Setting", "Value")
    for key in sorted(settings):
        table.add_row(key, _cell(settings[key]))
    _console(console).print(table)


def print_action_result(
    result: ActionResult,
    output: str = "table",
    console: Optional[Console] = None,
) -> None:
    """Report the outcome of an action.

    JSON and YAML output get the whole result. Tables report status as a
    sentence, and colour changes as the colour name and its coordinates
    followed by the state sent and the bridge response.
    """
    console = _console(console)
    if output != "table":
        print_output(
            {
                "action": result.action.value,
                "light": result.light_id,
                "name": result.light_name,
                "on": result.is_on,
                "value": result.value,
                "state": result.state,
                "response": result.response,
            },
            output,
        )
        return

    if result.action is Action.STATUS:
        console.print(escape(result.message), highlight=False)
        return

    if result.action is Action.HUE and result.state is not None:
        x, y = result.state["xy"]
        console.print(f"colour: {escape(result.value or '')}", highlight=False)
        console.print(f"X: {x:f}\nY: {y:f}", highlight=False)
        console.print_json(data=result.state)
        console.print_json(data=result.response)
