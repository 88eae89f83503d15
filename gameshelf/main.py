"""Command-line entry point.

``gameshelf`` starts the TUI; ``gameshelf --no-tui`` prints where the
configuration and collection live and exits.
"""

import argparse
import asyncio
import signal
import sys
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from functools import cached_property
from pathlib import Path

import structlog

from gameshelf import __version__
from gameshelf.models import AppConfig
from gameshelf.services.collection import CollectionManager
from gameshelf.services.config import ConfigurationService
from gameshelf.services.http_client import HttpClientService
from gameshelf.services.igdb_client import IGDBClient
from gameshelf.services.logging import setup_logging
from gameshelf.services.storage import CollectionStore, JsonFileStorage


log = structlog.stdlib.get_logger()

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class ApplicationContext:
    """Builds services on first use and tears them down on exit."""

    def __init__(self, config_path: Path | None = None) -> None:
        self._config_path = config_path
        self._shutdown_callbacks: list[Callable[[], None]] = []
        self._shutdown_requested = False

    @cached_property
    def config_service(self) -> ConfigurationService:
        return ConfigurationService(config_path=self._config_path)

    @cached_property
    def config(self) -> AppConfig:
        return self.config_service.load_config()

    @cached_property
    def http_client(self) -> HttpClientService:
        return HttpClientService(timeout=self.config.request_timeout)

    @cached_property
    def igdb_client(self) -> IGDBClient | None:
        """The metadata client, or None while no credentials are configured."""
        if not self.config.has_credentials:
            return None
        return IGDBClient.from_config(self.config, self.http_client)

    @cached_property
    def collection_manager(self) -> CollectionManager:
        manager = CollectionManager(CollectionStore(JsonFileStorage(self.config.storage_path)))
        manager.activate()
        return manager

    @property
    def shutdown_requested(self) -> bool:
        return self._shutdown_requested

    def on_shutdown(self, callback: Callable[[], None]) -> None:
        self._shutdown_callbacks.append(callback)

    def request_shutdown(self) -> None:
        log.info("Shutdown requested", callbacks=len(self._shutdown_callbacks))
        self._shutdown_requested = True
        for callback in self._shutdown_callbacks:
            callback()

    async def cleanup(self) -> None:
        # Only close what was actually created
        if "http_client" in self.__dict__:
            await self.http_client.close()
        log.info("Application cleanup complete")


@dataclass(frozen=True)
class CliOptions:
    config: Path | None = None
    log_level: str | None = None
    log_dir: Path | None = None
    no_tui: bool = False

    @property
    def effective_log_dir(self) -> Path | None:
        """The TUI owns the terminal, so it always logs to files."""
        if self.log_dir is None and not self.no_tui:
            return Path("logs")
        return self.log_dir


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gameshelf",
        description="Search IGDB and keep a local collection of your games",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  gameshelf                             Start the TUI application
  gameshelf --log-level DEBUG           Start with debug logging
  gameshelf --config ./my-config.json   Use custom config file
  gameshelf --no-tui                    Print configuration and collection size
        """
    )
    _ = parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    _ = parser.add_argument(
        "--config",
        type=Path,
        help="Path to configuration file (default: ~/.config/gameshelf/config.json)",
    )
    _ = parser.add_argument("--log-level", choices=LOG_LEVELS, help="Minimum log level (default: log_level from the config file)")
    _ = parser.add_argument("--log-dir", type=Path, help="Directory for log files (default: ./logs when running the TUI)")
    _ = parser.add_argument("--no-tui", action="store_true", help="Print a summary instead of starting the TUI")
    return parser


def parse_arguments(argv: Sequence[str] | None = None) -> CliOptions:
    ns = build_parser().parse_args(argv)
    return CliOptions(config=ns.config, log_level=ns.log_level, log_dir=ns.log_dir, no_tui=ns.no_tui)


def resolve_log_level(options: CliOptions, config: AppConfig) -> str:
    """The command-line level wins; otherwise the config file decides."""
    return options.log_level or config.log_level


def setup_signal_handlers(context: ApplicationContext) -> None:
    def signal_handler(signum: int, frame: object) -> None:
        _ = frame
        log.info("Received signal", signal=signal.Signals(signum).name)
        context.request_shutdown()

    for signum in (signal.SIGINT, signal.SIGTERM):
        _ = signal.signal(signum, signal_handler)


async def run_tui(context: ApplicationContext) -> int:
    """Run the TUI until the user quits or a shutdown is requested.

    Returns:
        Process exit code
    """
    from gameshelf.ui.app import AppServices, GameShelfApp

    try:
        services = AppServices(
            collection=context.collection_manager,
            metadata=context.igdb_client,
            config=context.config,
        )
        if services.metadata is None:
            log.warning("IGDB credentials missing, search and detail pages disabled")

        app = GameShelfApp(services)
        context.on_shutdown(app.exit)
        await app.run_async()
        return 0

    except Exception as e:
        log.error("TUI application error", error=str(e), exc_info=True)
        return 1
    finally:
        await context.cleanup()


def print_summary(context: ApplicationContext) -> None:
    config = context.config
    lines = [
        f"Game Shelf {__version__}",
        f"Configuration file: {context.config_service.config_path}",
        f"Collection storage: {config.storage_path}",
        f"Games in collection: {context.collection_manager.get_collection_count()}",
        f"IGDB credentials: {'configured' if config.has_credentials else 'missing'}",
    ]
    print("\n".join(lines))


def main(argv: Sequence[str] | None = None) -> None:
    options = parse_arguments(argv)
    log_dir = options.effective_log_dir
    tui_mode = not options.no_tui
    _ = setup_logging(log_level=options.log_level or "INFO", log_dir=log_dir, tui_mode=tui_mode)
    log.info("Starting Game Shelf", version=__version__, config_path=str(options.config or "default"))

    context = ApplicationContext(config_path=options.config)
    log_level = resolve_log_level(options, context.config)
    if log_level != (options.log_level or "INFO"):
        _ = setup_logging(log_level=log_level, log_dir=log_dir, tui_mode=tui_mode)
        log.info("Applied log level from configuration", log_level=log_level)
    setup_signal_handlers(context)

    try:
        exit_code = 0
        if options.no_tui:
            print_summary(context)
        else:
            exit_code = asyncio.run(run_tui(context))
    except KeyboardInterrupt:
        log.info("Application interrupted by user")
        exit_code = 130
    except Exception as e:
        log.error("Unhandled exception", error=str(e), exc_info=True)
        print(f"Fatal error: {e}", file=sys.stderr)
        exit_code = 1

    log.info("Application exiting", exit_code=exit_code)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
