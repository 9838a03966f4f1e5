"""
FuelFlow main entry point.

This module provides the CLI interface for the FuelFlow client.
"""

import sys
import os
import argparse
from typing import Optional

from .errors import ErrorBoundary, format_error_for_log, format_error_for_user


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fuelflow",
        description="FuelFlow - petrol station accounting client",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  fuelflow login admin          Log in (prompts for the password)
  fuelflow whoami               Show the current session and currency
  fuelflow format 250000        Format with the station's currency
  fuelflow format 1234.5 --currency USD --compact
  fuelflow logout
        """
    )

    parser.add_argument(
        "--version", "-v",
        action="store_true",
        help="Show version information"
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging"
    )

    sub = parser.add_subparsers(dest="command")

    login = sub.add_parser("login", help="Log in to the FuelFlow server")
    login.add_argument("username", nargs="?", help="Username (prompted if omitted)")
    login.add_argument("--password", help="Password (prompted if omitted)")

    sub.add_parser("logout", help="End the current session")
    sub.add_parser("whoami", help="Show the current session")
    sub.add_parser("currency", help="Show the active currency")
    sub.add_parser("currencies", help="List supported currencies")

    fmt = sub.add_parser("format", help="Format an amount")
    fmt.add_argument("amount")
    fmt.add_argument("--currency", "-c", help="Currency code (default: station currency)")
    fmt.add_argument("--compact", action="store_true", help="Compact notation")
    fmt.add_argument("--min-fraction", type=int, help="Minimum fraction digits")
    fmt.add_argument("--max-fraction", type=int, help="Maximum fraction digits")

    parse = sub.add_parser("parse", help="Read a number out of a formatted amount")
    parse.add_argument("text")
    parse.add_argument("--currency", "-c", help="Currency whose separators the text uses")

    sub.add_parser("setup", help="Configure the server URL")

    return parser


def main(argv: Optional[list] = None) -> int:
    """Main entry point for FuelFlow."""
    args = build_parser().parse_args(argv)

    if args.version:
        from . import __version__
        print(f"FuelFlow version {__version__}")
        return 0

    if args.debug:
        os.environ["FUELFLOW_DEBUG"] = "1"

    from .config import get_config
    from .audit import ActionType, AuditLogger, setup_logging
    from .ui import TerminalUI

    config = get_config()
    setup_logging(config.logging.level)
    ui = TerminalUI(use_colors=config.ui.use_colors)

    handlers = {
        "login": cmd_login,
        "logout": cmd_logout,
        "whoami": cmd_whoami,
        "currency": cmd_currency,
        "currencies": cmd_currencies,
        "format": cmd_format,
        "parse": cmd_parse,
        "setup": cmd_setup,
    }
    command = args.command or "whoami"
    handler = handlers[command]

    try:
        with ErrorBoundary(command, show_technical_details=args.debug) as boundary:
            exit_code = handler(args, ui)
    except KeyboardInterrupt:
        ui.print_info("Cancelled.")
        return 130

    if not boundary.has_error:
        return exit_code

    error_ctx = boundary.error_context
    if isinstance(error_ctx.original_exception, EOFError):
        ui.print_info("Cancelled.")
        return 130

    ui.print_error(
        format_error_for_user(error_ctx),
        technical_details=format_error_for_log(error_ctx) if args.debug else None,
    )
    AuditLogger.from_config(config).log(
        ActionType.ERROR,
        f"Error: {error_ctx.operation}",
        success=False,
        error=error_ctx.technical_message,
    )
    return 1


def _mount():
    from .context import AppContext
    return AppContext().mount()


def cmd_login(args, ui) -> int:
    from prompt_toolkit import prompt

    username = args.username or prompt("Username: ").strip()
    password = args.password if args.password is not None else prompt("Password: ", is_password=True)

    app = _mount()
    try:
        session = app.auth.login(username, password)
        app.currency.wait(app.config.api.timeout)
        app.station.wait(app.config.api.timeout)
        ui.print_success(f"Login successful. Welcome, {session.full_name}.")
        ui.print_session(session, app.currency.currency, app.station.settings)
    finally:
        app.unmount()
    return 0


def cmd_logout(args, ui) -> int:
    app = _mount()
    try:
        was_logged_in = app.auth.is_authenticated
        app.auth.logout()
    finally:
        app.unmount()

    if was_logged_in:
        ui.print_success("Logged out.")
    else:
        ui.print_info("No active session.")
    return 0


def cmd_whoami(args, ui) -> int:
    from .auth import AuthGuard

    app = _mount()
    try:
        session = AuthGuard(app.auth).check()
        app.currency.wait(app.config.api.timeout)
        app.station.wait(app.config.api.timeout)
        ui.print_session(session, app.currency.currency, app.station.settings)
    finally:
        app.unmount()
    return 0


def cmd_currency(args, ui) -> int:
    app = _mount()
    try:
        app.currency.wait(app.config.api.timeout)
        info = app.currency.currency_config
        result = app.currency.last_fetch_result
    finally:
        app.unmount()

    ui.console.print(f"{info.code} {info.symbol} ({info.name}, {info.locale})")
    if result is not None and result.is_err:
        ui.print_warning(f"Station lookup failed, using default: {result.error.user_message}")
    return 0


def cmd_currencies(args, ui) -> int:
    ui.print_currencies()
    return 0


def cmd_format(args, ui) -> int:
    from .currency import format_amount, format_amount_compact

    if args.currency:
        code = args.currency.upper()
    else:
        app = _mount()
        try:
            app.currency.wait(app.config.api.timeout)
            code = app.currency.currency
        finally:
            app.unmount()

    try:
        if args.compact:
            text = format_amount_compact(args.amount, code)
        else:
            text = format_amount(
                args.amount,
                code,
                minimum_fraction_digits=args.min_fraction,
                maximum_fraction_digits=args.max_fraction,
            )
    except ValueError as e:
        ui.print_error(str(e))
        return 2

    ui.console.print(text)
    return 0


def cmd_parse(args, ui) -> int:
    from .currency import parse_currency_string

    try:
        value = parse_currency_string(
            args.text, args.currency.upper() if args.currency else None
        )
    except ValueError as e:
        ui.print_error(str(e))
        return 2

    ui.console.print(str(value))
    return 0


def cmd_setup(args, ui) -> int:
    """Write the server URL to the user config."""
    import tomli_w
    from prompt_toolkit import prompt
    from .config import get_config, load_toml_config, reset_config, user_config_dir

    current = get_config().api.base_url
    base_url = prompt(f"FuelFlow server URL [{current}]: ").strip() or current

    config_dir = user_config_dir()
    config_dir.mkdir(parents=True, exist_ok=True)
    config_file = config_dir / "config.toml"

    config_content = load_toml_config(config_file)
    config_content.setdefault("api", {})["base_url"] = base_url.rstrip("/")
    config_content["setup_complete"] = True

    try:
        with open(config_file, "wb") as f:
            tomli_w.dump(config_content, f)
    except OSError as e:
        ui.print_error(f"Failed to save config: {e}")
        return 1

    reset_config()
    ui.print_success(f"Configuration saved to {config_file}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
