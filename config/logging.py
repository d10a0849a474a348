# coding: utf-8
"""
Logging configuration with loguru for Astra Health Backend

Both entry points (api_server.py, bot.py) call setup_logging() once with
their service name; log files are split per service.
"""
import logging
import re
import sys
from pathlib import Path

import sentry_sdk
from loguru import logger

from config.config import LOG_LEVEL, ENVIRONMENT, SENTRY_DSN

LOGS_DIR = Path(__file__).parent.parent / "logs"

FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {extra[service]} | {name}:{function}:{line} | {message}"
CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<magenta>{extra[service]}</magenta> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level>"
)

# Users are addressed by user_hash in logs; emails and tokens never land in files
_EMAIL_RE = re.compile(r"[\w.+-]+@[\w-]+\.[\w.-]+")
_BEARER_RE = re.compile(r"Bearer\s+[\w\-.]+")

NOISY_LOGGERS = {
    "aiohttp": logging.WARNING,
    "aiogram": logging.WARNING,
    "apscheduler": logging.WARNING,
    "sqlalchemy.engine": logging.ERROR,
}


def redact(text: str) -> str:
    text = _BEARER_RE.sub("Bearer [redacted]", text)
    return _EMAIL_RE.sub("[email]", text)


def _patch_record(record) -> None:
    record["message"] = redact(record["message"])


def setup_logging(service_name: str = "api") -> None:
    """
    Setup loguru sinks: console, daily file per service, error file, Sentry

    Args:
        service_name: "api" or "bot"
    """
    logger.remove()
    logger.configure(extra={"service": service_name}, patcher=_patch_record)

    LOGS_DIR.mkdir(exist_ok=True)

    logger.add(sys.stdout, format=CONSOLE_FORMAT, level=LOG_LEVEL, colorize=True)

    logger.add(
        LOGS_DIR / f"{service_name}_{{time:YYYY-MM-DD}}.log",
        format=FILE_FORMAT,
        level="DEBUG",
        rotation="00:00",  # Rotate at midnight
        retention="7 days",
        compression="zip",
        encoding="utf-8",
    )

    logger.add(
        LOGS_DIR / f"{service_name}_error_{{time:YYYY-MM-DD}}.log",
        format=FILE_FORMAT,
        level="ERROR",
        rotation="00:00",
        retention="30 days",
        compression="zip",
        encoding="utf-8",
    )

    if SENTRY_DSN:
        logger.add(sentry_sink, level="ERROR", format="{message}")

    for name, level in NOISY_LOGGERS.items():
        logging.getLogger(name).setLevel(level)

    logger.info(f"Astra {service_name} logging ready | Environment: {ENVIRONMENT} | Level: {LOG_LEVEL}")


def sentry_sink(message):
    """Forward ERROR/CRITICAL records to Sentry"""
    record = message.record

    if record["exception"]:
        sentry_sdk.capture_exception(record["exception"].value)
        return

    sentry_sdk.capture_message(
        record["message"],
        level="fatal" if record["level"].name == "CRITICAL" else "error",
        extras={
            "service": record["extra"].get("service"),
            "function": record["function"],
            "file": record["file"].path,
            "line": record["line"],
        },
    )
