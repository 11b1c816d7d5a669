"""
Logging for mintauction.

Every subsystem logs under the "mintauction" namespace (auction, supply,
transfer, token, storage, deployment). Console output is colored with
colorlog; an optional plain-text file sink mirrors it.

Records carry the auction's own notion of time as `chain_time`. The
auction runs on a Clock that is frequently simulated (ManualClock), so
the wall-clock timestamp alone says little about where in a round a
line was written. deploy_auction() binds the chain's clock; before that
the field reads "-".
"""

import logging
import sys
from pathlib import Path
from typing import Optional, Union

import colorlog

ROOT = "mintauction"

LOG_FILE = "mintauction.log"

CONSOLE_FORMAT = (
    "%(log_color)s%(asctime)s t=%(chain_time)s [%(name)s] %(levelname)-8s%(reset)s %(message)s"
)
FILE_FORMAT = "%(asctime)s t=%(chain_time)s [%(name)s] %(levelname)-8s %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

LEVEL_COLORS = {
    "DEBUG": "cyan",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "red,bg_white",
}


def parse_level(level: Union[int, str]) -> int:
    """Accept logging constants or names such as "debug"."""
    if isinstance(level, int):
        return level
    value = logging.getLevelName(level.upper())
    if not isinstance(value, int):
        raise ValueError(f"Unknown log level: {level!r}")
    return value


class ChainTimeFilter(logging.Filter):
    """Stamps each record with the bound clock's current time."""

    def __init__(self):
        super().__init__()
        self.clock = None

    def filter(self, record: logging.LogRecord) -> bool:
        record.chain_time = self.clock.now() if self.clock is not None else "-"
        return True


class AuctionLogger:
    """Process-wide logging setup for mintauction components"""

    _initialized = False
    _log_file: Optional[Path] = None
    _time_filter = ChainTimeFilter()

    @classmethod
    def setup(
        cls,
        level: Union[int, str] = logging.INFO,
        log_dir: Optional[Union[str, Path]] = None,
        log_to_file: bool = False,
    ):
        """
        Configure the "mintauction" logger tree once per process.

        Args:
            level: Logging level, as a constant or a name
            log_dir: Directory for the log file (./logs if None)
            log_to_file: Also write to <log_dir>/mintauction.log
        """
        if cls._initialized:
            return
        level = parse_level(level)

        root = logging.getLogger(ROOT)
        root.setLevel(level)
        root.handlers.clear()

        console = colorlog.StreamHandler(sys.stdout)
        console.setFormatter(
            colorlog.ColoredFormatter(CONSOLE_FORMAT, datefmt=DATE_FORMAT, log_colors=LEVEL_COLORS)
        )
        cls._attach(root, console, level)

        if log_to_file:
            directory = Path(log_dir) if log_dir else Path("logs")
            directory.mkdir(parents=True, exist_ok=True)
            cls._log_file = directory / LOG_FILE
            sink = logging.FileHandler(cls._log_file)
            sink.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT))
            cls._attach(root, sink, level)

        cls._initialized = True

    @classmethod
    def _attach(cls, root: logging.Logger, handler: logging.Handler, level: int) -> None:
        handler.setLevel(level)
        handler.addFilter(cls._time_filter)
        root.addHandler(handler)

    @classmethod
    def bind_clock(cls, clock) -> None:
        """Use `clock` for the chain_time field of subsequent records."""
        cls._time_filter.clock = clock

    @classmethod
    def log_file(cls) -> Optional[Path]:
        return cls._log_file

    @classmethod
    def reset(cls) -> None:
        """Drop handlers so the next setup() call reconfigures from scratch."""
        root = logging.getLogger(ROOT)
        for handler in root.handlers:
            handler.close()
        root.handlers.clear()
        cls._initialized = False
        cls._log_file = None
        cls._time_filter.clock = None

    @classmethod
    def get_logger(cls, name: str) -> logging.Logger:
        if not cls._initialized:
            cls.setup()
        return logging.getLogger(f"{ROOT}.{name}")


def get_logger(name: str) -> logging.Logger:
    """Logger for a subsystem, e.g. get_logger("auction")"""
    return AuctionLogger.get_logger(name)


def setup_logging(
    level: Union[int, str] = logging.INFO,
    log_dir: Optional[Union[str, Path]] = None,
    log_to_file: bool = False,
):
    AuctionLogger.setup(level=level, log_dir=log_dir, log_to_file=log_to_file)
