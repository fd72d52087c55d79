"""Run the LMS Bridge from the command line."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from contextlib import suppress
from logging.handlers import RotatingFileHandler
from typing import Any, Final

from aiorun import run
from colorlog import ColoredFormatter

from lms_bridge.common.helpers.json import json_loads
from lms_bridge.constants import CONF_LOG_LEVEL, ROOT_LOGGER_NAME, VERBOSE_LOG_LEVEL
from lms_bridge.server import LmsBridge

FORMAT_DATETIME: Final = "%Y-%m-%d %H:%M:%S"
LOG_FORMAT: Final = "%(asctime)s.%(msecs)03d %(levelname)s [%(name)s] %(message)s"
LOG_COLORS: Final = {
    "VERBOSE": "light_black",
    "DEBUG": "cyan",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "red",
}
LOG_FILENAME: Final = "lmsbridge.log"
OPTIONS_FILENAME: Final = "options.json"
MAX_LOG_FILESIZE = 1000000 * 10  # 10 MB

LOGGER = logging.getLogger(ROOT_LOGGER_NAME)


def get_arguments(argv: list[str] | None = None) -> argparse.Namespace:
    """Arguments handling."""
    parser = argparse.ArgumentParser(
        description="Mirror the players of a Logitech Media Server into local devices"
    )
    parser.add_argument(
        "-c",
        "--config",
        metavar="path_to_config_dir",
        default=os.path.join(os.path.expanduser("~"), ".lmsbridge"),
        help="Directory with settings.json; the log file is written here too",
    )
    parser.add_argument(
        "--log-level",
        default=os.environ.get("LOG_LEVEL", "info"),
        help="Log level of the bridge (verbose, debug, info, warning, error), "
        f"a log_level in {OPTIONS_FILENAME} takes precedence; default=info",
    )
    return parser.parse_args(argv)


def parse_log_level(value: str | int) -> int:
    """Translate a log level name (verbose included) into its number."""
    if isinstance(value, int):
        return value
    name = value.strip().upper()
    if name == "VERBOSE":
        return VERBOSE_LOG_LEVEL
    level = logging.getLevelName(name)
    if not isinstance(level, int):
        msg = f"Unknown log level: {value}"
        raise ValueError(msg)
    return level


def get_log_level(data_dir: str, requested: str) -> int:
    """Return the log level for the bridge, options.json in the data dir wins."""
    options_file = os.path.join(data_dir, OPTIONS_FILENAME)
    if os.path.isfile(options_file):
        with open(options_file, "rb") as _file:
            options = json_loads(_file.read())
        if isinstance(options, dict) and options.get(CONF_LOG_LEVEL):
            requested = options[CONF_LOG_LEVEL]
    return parse_log_level(requested)


def setup_logger(data_dir: str) -> None:
    """Log colored to the console and plain to a file which rotates at each start.

    Only the handlers are set up here, the level of the bridge logger is
    applied by the bridge itself.
    """
    logging.addLevelName(VERBOSE_LOG_LEVEL, "VERBOSE")
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(
        ColoredFormatter(
            f"%(log_color)s{LOG_FORMAT}%(reset)s",
            datefmt=FORMAT_DATETIME,
            reset=True,
            log_colors=LOG_COLORS,
        )
    )
    file_handler = RotatingFileHandler(
        os.path.join(data_dir, LOG_FILENAME), maxBytes=MAX_LOG_FILESIZE, backupCount=1
    )
    with suppress(OSError):
        file_handler.doRollover()
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=FORMAT_DATETIME))
    logging.basicConfig(level=logging.INFO, handlers=[console_handler, file_handler])
    logging.captureWarnings(True)

    # silence some noisy loggers
    logging.getLogger("asyncio").setLevel(logging.WARNING)
    logging.getLogger("aiohttp.access").setLevel(logging.WARNING)

    sys.excepthook = lambda *args: logging.getLogger(None).exception(
        "Uncaught exception",
        exc_info=args,  # type: ignore[arg-type]
    )


def _loop_exception_handler(_: Any, context: dict[str, Any]) -> None:
    """Log errors that were not handled by a task or callback."""
    LOGGER.error(
        "Unhandled error in event loop: %s",
        context["message"],
        exc_info=context.get("exception"),
    )


def main() -> None:
    """Start LMS Bridge."""
    args = get_arguments()
    data_dir = args.config
    os.makedirs(data_dir, exist_ok=True)
    try:
        log_level = get_log_level(data_dir, args.log_level)
    except ValueError as err:
        sys.exit(str(err))

    setup_logger(data_dir)
    bridge = LmsBridge(data_dir, log_level=log_level)

    def on_shutdown(loop: asyncio.AbstractEventLoop) -> None:
        LOGGER.info("Shutdown requested")
        loop.run_until_complete(bridge.stop())

    async def start_bridge() -> None:
        asyncio.get_running_loop().set_exception_handler(_loop_exception_handler)
        await bridge.start()

    run(start_bridge(), shutdown_callback=on_shutdown)


if __name__ == "__main__":
    main()
