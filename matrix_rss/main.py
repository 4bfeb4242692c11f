"""
Main entry point for Matrix RSS.

Runs the poll loop that checks feeds and posts updates to Matrix.
"""

import argparse
import asyncio
import logging
import signal
import sys
from pathlib import Path
from urllib.parse import urlsplit

import coloredlogs

from matrix_rss import __version__
from matrix_rss.config import (
    DEFAULT_CONFIG_PATH,
    AppConfig,
    ConfigError,
    create_default_config,
    is_default_config,
    load_config,
)
from matrix_rss.matrix import DeliveryError, MatrixNotifier, compose_message
from matrix_rss.notifier import FeedFetcher, Notifier
from matrix_rss.rss_parser import FeedParser, FetchError
from matrix_rss.tracker import UpdateTracker

logger = logging.getLogger(__name__)

# Libraries whose INFO and DEBUG output is only noise here
QUIET_LOGGERS = ("aiohttp", "asyncio", "MARKDOWN")


def redact_proxy_url(proxy_url: str) -> str:
    """Mask the password of a proxy URL so it can be logged."""
    try:
        parsed = urlsplit(proxy_url)
    except ValueError:
        return "<proxy url>"
    if parsed.password is None:
        return proxy_url
    host = parsed.netloc.rpartition("@")[2]
    return parsed._replace(netloc=f"{parsed.username or ''}:****@{host}").geturl()


class MatrixRSSWatcher:
    """
    Main Matrix RSS application.

    Owns the update tracker and the live configuration, and drives
    the fetch, compare and notify cycle over all configured feeds.
    """

    def __init__(
        self,
        config: AppConfig,
        config_path: str | Path | None = None,
        parser: FeedFetcher | None = None,
        notifier: Notifier | None = None,
    ):
        """
        Initialize the watcher.

        Parameters
        ----------
        config : AppConfig
            Validated configuration used for the first cycle.
        config_path : str | Path | None
            File the configuration is reloaded from on request.
        parser : FeedFetcher | None
            Feed client; built from the configuration when omitted.
        notifier : Notifier | None
            Notification backend; built from the configuration when omitted.
        """
        self.config = config
        self.config_path = Path(config_path) if config_path else None
        self.tracker = UpdateTracker()
        self.parser = parser
        self.notifier = notifier
        self._pending_config: AppConfig | None = None
        self._running = False
        self._task: asyncio.Task | None = None

    @staticmethod
    def _build_parser(config: AppConfig) -> FeedParser:
        return FeedParser(
            timeout=config.request_timeout,
            user_agent=config.user_agent,
            proxy_url=config.proxy,
        )

    @staticmethod
    def _build_notifier(config: AppConfig) -> MatrixNotifier:
        return MatrixNotifier(
            config.matrix_server,
            config.matrix_room_id,
            config.matrix_token,
            timeout=config.request_timeout,
            proxy_url=config.proxy,
        )

    async def start(self) -> None:
        """Start the watcher and run until stopped."""
        logger.info("Starting Matrix RSS")

        if self.config.proxy:
            logger.info("Using proxy: %s", redact_proxy_url(self.config.proxy))

        if self.parser is None:
            self.parser = self._build_parser(self.config)
        if self.notifier is None:
            self.notifier = self._build_notifier(self.config)

        if not await self.notifier.test_connection():
            logger.error("Failed to connect to Matrix, exiting")
            await self.stop()
            sys.exit(1)

        self._running = True
        logger.info(
            "Watching %d feed(s), checking every %d minute(s)",
            len(self.config.feed_urls),
            self.config.check_interval,
        )

        self._task = asyncio.create_task(self._poll_loop())
        try:
            await self._task
        except asyncio.CancelledError:
            logger.info("Poll loop cancelled")

    async def stop(self) -> None:
        """Stop the watcher gracefully."""
        logger.info("Stopping Matrix RSS")
        self._running = False

        if self._task and not self._task.done():
            self._task.cancel()
            await asyncio.gather(self._task, return_exceptions=True)

        if self.parser:
            await self.parser.close()
        if self.notifier:
            await self.notifier.close()

        logger.info("Matrix RSS stopped")

    async def _poll_loop(self) -> None:
        """Run cycles forever, sleeping ``check_interval`` minutes after each."""
        while self._running:
            try:
                await self._apply_pending_config()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Failed to apply reloaded configuration, keeping current one")
            await self.run_cycle()
            await asyncio.sleep(self.config.check_interval * 60)

    async def run_cycle(self) -> int:
        """
        Check every configured feed once.

        The configuration is read once, so a reload never changes the
        feed list in the middle of a pass.

        Returns
        -------
        int
            Number of notifications delivered during the pass.
        """
        config = self.config
        sent = 0

        for feed_url in config.feed_urls:
            try:
                if await self._check_feed(feed_url, config):
                    sent += 1
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Error checking feed %s", feed_url)

        logger.debug("Cycle finished: %d notification(s) sent", sent)
        return sent

    async def _check_feed(self, feed_url: str, config: AppConfig) -> bool:
        """
        Check one feed and notify if its newest entry changed.

        Parameters
        ----------
        feed_url : str
            URL of the feed to check.
        config : AppConfig
            Configuration snapshot of the current cycle.

        Returns
        -------
        bool
            True if a notification was delivered.
        """
        if not self.parser or not self.notifier:
            raise RuntimeError("Components not initialized")

        try:
            snapshot = await self.parser.fetch_feed(feed_url)
        except FetchError as e:
            logger.warning("Error fetching feed: %s", e)
            return False

        entry = snapshot.latest
        if entry is None:
            logger.debug("No entries found in feed %s", feed_url)
            return False

        if not self.tracker.is_new_update(feed_url, entry.marker):
            logger.debug("No update in feed %s", feed_url)
            return False

        message = compose_message(entry.title, entry.link, config.message_label)

        try:
            await self.notifier.send(message)
        except DeliveryError as e:
            logger.error("Error sending Matrix message for feed %s: %s", feed_url, e)
            return False

        self.tracker.record(feed_url, entry.marker)
        logger.info("Update message sent for feed: %s", feed_url)
        return True

    def request_reload(self) -> None:
        """
        Re-read the configuration file.

        A valid configuration is swapped in at the start of the next
        cycle; an invalid one is logged and the current one kept.
        """
        if self.config_path is None:
            logger.warning("Reload requested but no configuration file is known")
            return

        logger.info("Reloading configuration from %s", self.config_path)
        try:
            self._pending_config = load_config(self.config_path)
        except (FileNotFoundError, ConfigError) as e:
            logger.error("Configuration reload failed, keeping current one: %s", e)

    async def _apply_pending_config(self) -> None:
        """
        Swap in a reloaded configuration, rebuilding clients it affects.

        Replacement clients are built before anything is swapped, so a
        failure there leaves the current configuration in place. Errors
        closing the replaced clients are only logged.
        """
        new_config = self._pending_config
        if new_config is None:
            return
        self._pending_config = None

        http_changed = new_config.http_settings() != self.config.http_settings()
        matrix_changed = new_config.matrix_settings() != self.config.matrix_settings()

        replaced = []
        parser, notifier = self.parser, self.notifier
        if http_changed and parser is not None:
            replaced.append(parser)
            parser = self._build_parser(new_config)
        if (http_changed or matrix_changed) and notifier is not None:
            replaced.append(notifier)
            notifier = self._build_notifier(new_config)

        self.config, self.parser, self.notifier = new_config, parser, notifier

        for client in replaced:
            try:
                await client.close()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.warning("Error closing replaced client: %s", e)

        logger.info(
            "Configuration reloaded: %d feed(s), checking every %d minute(s)",
            len(new_config.feed_urls),
            new_config.check_interval,
        )


def setup_logging(verbose: bool = False) -> None:
    """
    Configure application logging.

    Parameters
    ----------
    verbose : bool
        If True, set log level to DEBUG.
    """
    level = logging.DEBUG if verbose else logging.INFO

    coloredlogs.install(
        level=level,
        fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def bootstrap_config(config_path: Path) -> AppConfig:
    """
    Load the configuration, creating the default file on first start.

    Exits the process with status 1 when the file had to be created,
    still holds the default values, or is invalid.
    """
    if not config_path.exists():
        logger.warning("Config not found, creating default config...")
        try:
            create_default_config(config_path)
        except ConfigError as e:
            logger.error("Error creating default config: %s", e)
            sys.exit(1)
        logger.error(
            "Default config created at %s. Please edit the config file and "
            "restart the program.",
            config_path,
        )
        sys.exit(1)

    try:
        config = load_config(config_path)
    except ConfigError as e:
        logger.error("%s", e)
        sys.exit(1)

    if is_default_config(config):
        logger.error(
            "Default config values detected. Please edit the config file at %s "
            "and restart the program.",
            config_path,
        )
        sys.exit(1)

    return config


def build_arg_parser() -> argparse.ArgumentParser:
    """Build the command line interface."""
    parser = argparse.ArgumentParser(
        prog="matrix-rss",
        description="Post the newest entry of RSS/Atom feeds to a Matrix room",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "-c",
        "--config",
        default=DEFAULT_CONFIG_PATH,
        help="Path to configuration file",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv: list[str] | None = None) -> None:
    """Main entry point."""
    args = build_arg_parser().parse_args(argv)

    setup_logging(args.verbose)

    config_path = Path(args.config)
    config = bootstrap_config(config_path)

    watcher = MatrixRSSWatcher(config, config_path)

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)

    def signal_handler():
        logger.info("Received shutdown signal")
        asyncio.create_task(watcher.stop())

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, signal_handler)

    if hasattr(signal, "SIGHUP"):
        loop.add_signal_handler(signal.SIGHUP, watcher.request_reload)

    try:
        loop.run_until_complete(watcher.start())
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
    finally:
        loop.run_until_complete(watcher.stop())
        loop.close()


if __name__ == "__main__":
    main()
