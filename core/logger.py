from __future__ import annotations
import sys

from loguru import logger

from .config import AppConfig, config

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level}</level> | "
    "{extra[component]} | {message}"
)


def setup_logging(cfg: AppConfig = config) -> None:
    """
    Replace loguru's default handler with a console sink and a JSON file sink.

    The console sink writes to stderr so CLI commands can print JSON on stdout.
    """
    logger.remove()
    logger.configure(extra={"component": "app"})
    logger.add(
        sys.stderr,
        level=cfg.log_level,
        enqueue=True,
        backtrace=False,
        diagnose=False,
        colorize=True,
        format=CONSOLE_FORMAT,
    )
    logger.add(
        cfg.log_file,
        rotation="20 MB",
        retention="14 days",
        compression="zip",
        level=cfg.log_level,
        enqueue=True,
        serialize=True,  # JSON lines
    )


setup_logging()


def get_logger(name: str = "app"):
    return logger.bind(component=name)
