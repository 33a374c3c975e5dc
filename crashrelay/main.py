"""Composition root for crashrelay.

The only module that imports both the core and the concrete adapters.
It loads settings, builds the enabled adapters behind an EventDispatcher,
and runs either the webhook server or the interactive CLI.
"""

import asyncio
import json
import logging
import sys
from typing import Any

from crashrelay.adapters.cli.commands import CLICommandHandler
from crashrelay.adapters.issue_tracker.jira import JiraNotificationAdapter
from crashrelay.adapters.notification.campfire import CampfireNotificationAdapter
from crashrelay.adapters.notification.fogbugz import FogBugzNotificationAdapter
from crashrelay.adapters.notification.hall import HallNotificationAdapter
from crashrelay.adapters.notification.web_hook import WebHookNotificationAdapter
from crashrelay.adapters.webhook.http_server import WebhookHTTPServer
from crashrelay.adapters.webhook.receiver import EventReceiver
from crashrelay.config import Settings, load_settings
from crashrelay.core.dispatcher import EventDispatcher
from crashrelay.core.ports import NotificationAdapter

ADAPTER_CLASSES: dict[str, type[NotificationAdapter]] = {
    "jira": JiraNotificationAdapter,
    "web_hook": WebHookNotificationAdapter,
    "hall": HallNotificationAdapter,
    "fogbugz": FogBugzNotificationAdapter,
    "campfire": CampfireNotificationAdapter,
}


def build_adapters(settings: Settings) -> list[NotificationAdapter]:
    """Instantiate the enabled adapters with the shared request timeout."""
    return [
        ADAPTER_CLASSES[name](timeout=settings.http_timeout_seconds)  # type: ignore[call-arg]
        for name in settings.adapter_names
    ]


CLI_PROMPT = "crashrelay> "

CLI_HELP = """
Commands take a single JSON object after the command name:

  adapters [{"format": "text"}]
      Registered adapters with their events and configuration fields.

  verify {"adapter": NAME, "config": {...}}
      Run an adapter's verification probe.
      e.g. verify {"adapter": "jira", "config": {"project_url": "https://example.atlassian.net/browse/APP"}}

  dispatch {"adapter": NAME, "event": EVENT, "config": {...}, "payload": {...}, "verbose": false}
      Deliver one event to one adapter.
      e.g. dispatch {"adapter": "web_hook", "event": "issue_impact_change", "config": {"url": "https://acme.com/hook"}}

  help    Show this message.
  exit    Leave the CLI.
"""


def parse_command_line(command_line: str) -> tuple[str, dict[str, Any]]:
    """Split ``command {json}`` into a command name and its arguments.

    Raises:
        ValueError: If the arguments are not a JSON object.
    """
    command, _, args_str = command_line.strip().partition(" ")
    args_str = args_str.strip()
    if not args_str:
        return command.lower(), {}

    try:
        args = json.loads(args_str)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON arguments: {e.msg}") from e
    if not isinstance(args, dict):
        raise ValueError("Arguments must be a JSON object")
    return command.lower(), args


def _require(args: dict[str, Any], *names: str) -> None:
    missing = [name for name in names if name not in args]
    if missing:
        raise ValueError(f"Missing required parameter: {', '.join(missing)}")


async def _execute_cli_command(
    cli_handler: CLICommandHandler,
    command: str,
    args: dict[str, Any],
) -> dict[str, Any]:
    """Execute one parsed CLI command.

    Raises:
        ValueError: If the command is unknown or a required argument is missing.
    """
    if command == "adapters":
        return cli_handler.list_adapters(output_format=args.get("format", "json"))

    if command == "verify":
        _require(args, "adapter")
        return await cli_handler.verify(args["adapter"], args.get("config") or {})

    if command == "dispatch":
        _require(args, "adapter", "event")
        return await cli_handler.dispatch_event(
            adapter_name=args["adapter"],
            event=args["event"],
            config=args.get("config") or {},
            payload=args.get("payload") or {},
            verbose=args.get("verbose", False),
        )

    raise ValueError(f"Unknown command: {command}. Use 'help' for available commands.")


async def _run_cli_interactive(cli_handler: CLICommandHandler) -> None:
    """Read commands from stdin until ``exit`` or EOF, printing JSON results.

    Args:
        cli_handler: CLICommandHandler instance for executing commands.
    """
    logger = logging.getLogger(__name__)
    loop = asyncio.get_running_loop()
    logger.info("Interactive CLI ready; 'help' lists commands, 'exit' quits")

    while True:
        try:
            # input() blocks, so it runs off the event loop
            command_line = await loop.run_in_executor(None, input, CLI_PROMPT)
        except EOFError:
            logger.info("EOF received, exiting CLI")
            return
        except KeyboardInterrupt:
            logger.info("Interrupted by user")
            continue

        if not command_line.strip():
            continue

        try:
            command, args = parse_command_line(command_line)
        except ValueError as e:
            logger.error(f"{e}. Use 'help' for command syntax.")
            continue

        if command == "exit":
            logger.info("Exiting CLI")
            return
        if command == "help":
            print(CLI_HELP)
            continue

        try:
            result = await _execute_cli_command(cli_handler, command, args)
        except Exception as e:
            logger.error(f"Command execution error: {e}", exc_info=True)
            result = {"status": "error", "message": str(e)}
        print(json.dumps(result, indent=2, default=str))


def configure_logging(log_level: str, log_format: str) -> None:
    """Configure application logging.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_format: Log format (json, text).
    """
    level = getattr(logging, log_level, logging.INFO)

    if log_format == "json":
        format_str = '{"time": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", "message": "%(message)s"}'
    else:
        format_str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=level,
        format=format_str,
        handlers=[
            logging.StreamHandler(sys.stdout),
        ],
    )
    # httpx logs every request URL at INFO; URLs may carry tokens
    logging.getLogger("httpx").setLevel(logging.WARNING)


async def _serve_webhook(dispatcher: EventDispatcher, settings: Settings) -> None:
    """Serve the webhook endpoints until the task is cancelled."""
    http_server = WebhookHTTPServer(
        receiver=EventReceiver(dispatcher),
        host=settings.webhook_host,
        port=settings.webhook_port,
        api_key=settings.webhook_api_key or None,
        require_auth=settings.webhook_require_auth,
    )
    await http_server.start()
    try:
        # Each request is bridged onto this loop by the server thread
        await asyncio.Event().wait()
    finally:
        await http_server.stop()


async def bootstrap() -> None:
    """Load configuration, wire adapters, and run the configured mode.

    Adapters are closed when the run mode returns or is cancelled.

    Raises:
        ValidationError: If the environment holds invalid settings.
        asyncio.CancelledError: On graceful shutdown signal
    """
    settings = load_settings()
    configure_logging("DEBUG" if settings.debug else settings.log_level, settings.log_format)
    logger = logging.getLogger(__name__)

    dispatcher = EventDispatcher(build_adapters(settings))
    logger.info(
        f"Starting crashrelay in {settings.run_mode} mode "
        f"with adapters: {', '.join(settings.adapter_names)}",
        extra={"run_mode": settings.run_mode},
    )

    try:
        if settings.run_mode == "cli":
            await _run_cli_interactive(CLICommandHandler(dispatcher))
        else:
            await _serve_webhook(dispatcher, settings)
    finally:
        await dispatcher.close()


def main() -> None:
    """Application entry point.

    Exit codes:
        0: Successful shutdown
        1: Fatal bootstrap or runtime error
        130: Interrupted by user (SIGINT/KeyboardInterrupt)
    """
    logger = logging.getLogger(__name__)
    try:
        asyncio.run(bootstrap())
    except KeyboardInterrupt:
        logger.warning("Shutdown requested by user (SIGINT)")
        sys.exit(130)
    except asyncio.CancelledError:
        logger.info("Graceful shutdown completed")
        sys.exit(0)
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
