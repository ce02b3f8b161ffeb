"""Command-line client for Philips Hue bridges."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Iterable, Optional

from rich.console import Console
from rich.markup import escape

from . import __version__, prompts
from .actions import (
    ActionError,
    ActionRequest,
    InvalidActionError,
    RunContext,
    build_request,
    dispatch,
)
from .client import (
    LINK_BUTTON_NOT_PRESSED,
    BridgeApiError,
    BridgeClient,
    BridgeError,
    DiscoveredBridge,
    discover_all,
)
from .config import (
    APPLICATION_NAME,
    DEFAULT_CONFIG_FILE,
    ENV_PREFIX,
    ConfigError,
    ConfigNotFoundError,
    HueLightConfig,
    env,
)
from .output import (
    print_action_result,
    print_actions,
    print_bridge,
    print_bridge_config,
    print_config,
    print_discovered_bridges,
    print_lights,
    print_output,
    print_users,
)
from .registry import LightRegistry, RegistryError

LOG_FORMAT = "%(asctime)s %(levelname)s %(message)s"
DELETE_USER_URL = "https://account.meethue.com/apps"
USERNAME_NOTE = (
    'Hue uses the terms "user" and "username" in a confusing way. User typically '
    'refers to an "application", whereas Username refers to a Hue generated secret '
    "string used like a password or an API key. This tool uses the Username when "
    "interacting with the Hue Bridge."
)
# Table width when stdout is a pipe or file instead of a terminal
PIPE_WIDTH = 200

log = logging.getLogger("huelight")


class CliError(Exception):
    """Raised when the CLI encounters an expected error condition."""


def configure_logging(debug: bool) -> None:
    logging.basicConfig(level=logging.WARNING, format=LOG_FORMAT, force=True)
    log.setLevel(logging.DEBUG if debug else logging.WARNING)


def _make_console() -> Console:
    console = Console(legacy_windows=False)
    if not console.is_terminal:
        # Rich falls back to 80 columns, too narrow for --listall and usernames
        console.width = max(console.width, PIPE_WIDTH)
    return console


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=APPLICATION_NAME,
        description=(
            "CLI for Philips Hue bridges. Uses HUELIGHT_* env vars for defaults. "
            "Examples: `huelight --list`, `huelight --light 3 --action status`, "
            '`huelight --light "Living Room" --action hue --value red`.'
        ),
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s v{__version__}",
        help="Display version",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging for bridge requests and responses.",
    )

    config = parser.add_argument_group("configuration")
    config.add_argument(
        "--config",
        default=env("CONFIG"),
        help=(
            f"Configuration file: /path/to/file.yaml (env: {ENV_PREFIX}CONFIG). "
            f'Defaults to "./{DEFAULT_CONFIG_FILE}".'
        ),
    )
    config.add_argument(
        "--bridge",
        default=env("BRIDGE"),
        help=f"Which bridge to use, IP address (env: {ENV_PREFIX}BRIDGE). Overrides the config file.",
    )
    config.add_argument(
        "--username",
        default=env("USERNAME"),
        help=f"Username to login to bridge (env: {ENV_PREFIX}USERNAME). Overrides the config file.",
    )
    config.add_argument(
        "--makeconfig",
        action="store_true",
        help="Make a configuration file interactively",
    )
    config.add_argument(
        "--displayconfig",
        action="store_true",
        help="Display configuration",
    )
    config.add_argument(
        "--output",
        choices=["table", "json", "yaml"],
        default=env("OUTPUT", "table"),
        help=f"Output format (env: {ENV_PREFIX}OUTPUT). Defaults to 'table'.",
    )

    lights = parser.add_argument_group("lights")
    lights.add_argument("--list", action="store_true", help="List lights")
    lights.add_argument(
        "--listall",
        action="store_true",
        help="List all details about the lights",
    )
    lights.add_argument("--light", help="Select a light by ID or name")
    lights.add_argument(
        "--action",
        help="Action to do on the selected light (on, off, status, hue, brightness)",
    )
    lights.add_argument(
        "--value",
        help="Value for the action: a colour for hue, 0-100 for brightness",
    )

    bridge = parser.add_argument_group("bridge")
    bridge.add_argument(
        "--findbridges",
        action="store_true",
        help="Discover Hue bridges on network",
    )
    bridge.add_argument(
        "--showbridge",
        action="store_true",
        help="Show logged in bridge details",
    )
    bridge.add_argument(
        "--showusers",
        action="store_true",
        help="List all user/whitelist details",
    )
    bridge.add_argument(
        "--bridgeconfig",
        action="store_true",
        help="Show bridge configuration",
    )
    bridge.add_argument("--createuser", metavar="NAME", help="Creates a user")
    bridge.add_argument("--deleteuser", action="store_true", help="Deletes a user")

    return parser


def _has_command(args: argparse.Namespace) -> bool:
    return any(
        [
            args.findbridges,
            args.makeconfig,
            args.displayconfig,
            args.deleteuser,
            args.createuser,
            args.showbridge,
            args.showusers,
            args.bridgeconfig,
            args.list,
            args.listall,
            args.light,
            args.action,
        ]
    )


def _config_path(args: argparse.Namespace) -> Path:
    return Path(args.config) if args.config else DEFAULT_CONFIG_FILE


def _load_config(args: argparse.Namespace) -> HueLightConfig:
    path = _config_path(args)
    try:
        config = HueLightConfig.load(path)
    except ConfigNotFoundError as exc:
        raise CliError(f'Config file "{exc.path}" not found, exiting') from exc
    return config.merged(bridge=args.bridge, username=args.username)


def _build_client(config: HueLightConfig) -> BridgeClient:
    if not config.bridge:
        raise CliError("no bridge set")
    return BridgeClient(config.bridge, username=config.username)


def _validate_action(args: argparse.Namespace, console: Console) -> Optional[ActionRequest]:
    if args.action is None:
        return None
    try:
        request = build_request(args.action, args.value)
    except InvalidActionError as exc:
        console.print(f"ERROR: {escape(str(exc))}", highlight=False)
        console.print("Valid actions are:")
        print_actions(console)
        raise SystemExit(1) from None
    if not args.light:
        raise CliError(f'you must also use --light when using action "{request.action.value}"')
    log.info('ACTION: "--action %s" is valid', request.action.value)
    return request


def _bridge_known(bridges: Iterable[DiscoveredBridge], host: str) -> bool:
    return any(bridge.host.lower() == host.lower() for bridge in bridges)


def _show_discovered(bridges: list[DiscoveredBridge], console: Console) -> None:
    if not bridges:
        raise CliError("No Hue bridges found on network")
    print_discovered_bridges(bridges, console)


def _cmd_find_bridges(args: argparse.Namespace, console: Console) -> int:
    bridges = discover_all()
    if args.output != "table":
        print_output([bridge.to_dict() for bridge in bridges], args.output)
        return 0
    _show_discovered(bridges, console)
    return 0


def _cmd_make_config(args: argparse.Namespace, console: Console) -> int:
    if not prompts.yes_no("Do you want to create a config file?"):
        console.print("did not want to setup a config file, exiting")
        return 2

    if args.config:
        config_file = Path(args.config)
    else:
        console.print(
            f'\nThe default configuration file {APPLICATION_NAME} looks for is "{DEFAULT_CONFIG_FILE}" '
            "in the current directory.\n\nIf you choose a different name it will need to end in "
            f".yml or .yaml and always be passed to {APPLICATION_NAME} with the --config [filename] "
            "argument.",
            highlight=False,
        )
        answer = prompts.ask("Please choose a filename: ")
        if len(answer) < 4:
            raise CliError("filename too short, exiting")
        config_file = Path(answer)

    if args.bridge:
        try:
            bridges = discover_all()
        except BridgeError as exc:
            log.warning("Bridge discovery failed: %s", exc)
            bridges = []
        bridge = args.bridge
    else:
        bridges = discover_all()
        console.print()
        _show_discovered(bridges, console)
        bridge = prompts.ask("\nPlease type the IP of bridge you want to use: ")

    if not _bridge_known(bridges, bridge):
        if not prompts.yes_no(f'WARN: Bridge "{bridge}" is not valid, do you wish to continue'):
            return 1

    username = args.username or prompts.ask("Please type a username: ")
    new_config = HueLightConfig(bridge=bridge, username=username or None)

    console.print("---------------")
    console.print(f"Config file: {escape(str(config_file))}", highlight=False)
    console.print(f"     Bridge: {escape(new_config.bridge or '')}", highlight=False)
    console.print(f"   Username: {escape(new_config.username or '')}", highlight=False)
    console.print(f"Application: {escape(new_config.application)}", highlight=False)
    console.print()

    if not prompts.yes_no(f'Save this configuration to file "{config_file}"'):
        console.print("\nWARN: Aborting config file save")
        return 0

    console.print("Saving configuration")
    try:
        new_config.save(config_file)
    except OSError as exc:
        raise CliError(f"Unable to save into the file: {config_file}: {exc}") from exc
    return 0


def _cmd_display_config(config: HueLightConfig, args: argparse.Namespace, console: Console) -> int:
    settings = {"config": str(_config_path(args)), "output": args.output, **config.to_dict()}
    if args.output != "table":
        print_output(settings, args.output)
    else:
        print_config(settings, console)
    return 0


def _user_exists(client: BridgeClient, name: str) -> bool:
    return any(user.name.lower() == name.lower() for user in client.list_users())


def _cmd_create_user(config: HueLightConfig, args: argparse.Namespace, console: Console) -> int:
    name = args.createuser

    if not config.bridge:
        console.print(
            "\nWARN: Bridge has not been set, here is a list of discovered Hue bridges:\n"
        )
        bridges = discover_all()
        _show_discovered(bridges, console)
        host = prompts.ask("\nPlease type the IP address of the Hue bridge you wish to use: ")
        if not _bridge_known(bridges, host):
            raise CliError(f"Bridge not found, exiting: {host}")
        console.print(f"Bridge found, using: {escape(host)}", highlight=False)
        config = config.merged(bridge=host)

    with _build_client(config) as client:
        # Listing users needs an existing username
        if config.username:
            client.login(config.username)
            if _user_exists(client, name):
                raise CliError(f"user already exists: {name}")
        else:
            log.debug("No username configured, skipping duplicate user check")

        prompts.wait_for_enter(
            "To create the user you must first press the button on the Hue Bridge. "
            "Please press the button then return here and press the [return] key"
        )
        try:
            username = client.create_user(name)
        except BridgeApiError as exc:
            if exc.error_type == LINK_BUTTON_NOT_PRESSED:
                raise CliError(f"could not create user: {name}, link button not pressed") from exc
            raise CliError(f"could not create user: {name} ({exc})") from exc

        console.print(f"Created User: {escape(name)}", highlight=False)
        console.print(f"    Username: {escape(username)}\n", highlight=False)
        console.print(USERNAME_NOTE)
        console.print("\nCurrent whitelist/users are:")
        client.login(username)
        print_users(client.list_users(), console)
    return 0


def _cmd_show_bridge(client: BridgeClient, args: argparse.Namespace, console: Console) -> int:
    bridge_id = client.get_config().bridge_id
    if args.output != "table":
        print_output(
            {"host": client.host, "bridge_id": bridge_id, "user": client.username},
            args.output,
        )
    else:
        print_bridge(client.host, bridge_id, client.username, console)
    return 0


def _cmd_show_users(client: BridgeClient, args: argparse.Namespace, console: Console) -> int:
    users = client.list_users()
    if args.output != "table":
        print_output([user.to_dict() for user in users], args.output)
    else:
        print_users(users, console)
    return 0


def _cmd_bridge_config(client: BridgeClient, args: argparse.Namespace, console: Console) -> int:
    bridge_config = client.get_config()
    if args.output != "table":
        print_output(bridge_config.raw, args.output)
    else:
        print_bridge_config(bridge_config, console)
    return 0


def _cmd_lights(
    client: BridgeClient,
    request: Optional[ActionRequest],
    args: argparse.Namespace,
    console: Console,
) -> int:
    registry = LightRegistry(client)
    registry.load()
    log.info("Found %d lights", len(registry))

    light_id = None
    if args.light:
        light_id = registry.resolve(args.light)
        if light_id is None:
            raise CliError(f'"--light {args.light}" is not a valid light name or light id')
        log.debug('Matched light "%s" to light id %d', args.light, light_id)

    if args.list or args.listall:
        if args.output != "table":
            print_output([light.to_dict() for light in registry], args.output)
        else:
            print_lights(registry, detailed=args.listall, console=console)

    if request is not None:
        context = RunContext(
            client=client,
            registry=registry,
            request=request,
            light_id=light_id,
            output=args.output,
        )
        result = dispatch(context)
        print_action_result(result, context.output, console)
    return 0


def run(args: argparse.Namespace, console: Console) -> int:
    """Carry out the command line; returns the process exit code."""
    request = _validate_action(args, console)

    if args.findbridges:
        return _cmd_find_bridges(args, console)

    if args.makeconfig:
        return _cmd_make_config(args, console)

    config = _load_config(args)
    log.debug("Using config=%s", config)

    if args.displayconfig:
        return _cmd_display_config(config, args, console)

    if args.deleteuser:
        console.print(f"You can only delete a user via the Hue website at {DELETE_USER_URL}")
        return 0

    if args.createuser:
        return _cmd_create_user(config, args, console)

    with _build_client(config) as client:
        client.login(config.username)

        if args.showbridge:
            return _cmd_show_bridge(client, args, console)
        if args.showusers:
            return _cmd_show_users(client, args, console)
        if args.bridgeconfig:
            return _cmd_bridge_config(client, args, console)

        return _cmd_lights(client, request, args, console)


def main(argv: Optional[Iterable[str]] = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(args=argv)
    configure_logging(args.debug)
    log.debug("CLI args: %s", args)

    if not _has_command(args):
        parser.print_help()
        sys.exit(1)

    console = _make_console()
    try:
        code = run(args, console)
    except KeyboardInterrupt:
        raise SystemExit(130) from None
    except (CliError, ConfigError, ActionError, RegistryError) as exc:
        sys.stderr.write(f"ERROR: {exc}\n")
        sys.exit(1)
    except BridgeError as exc:
        log.debug("Bridge call failed", exc_info=True)
        sys.stderr.write(f"ERROR: {exc}\n")
        sys.exit(1)

    if code:
        sys.exit(code)


if __name__ == "__main__":
    main()
