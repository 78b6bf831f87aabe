"""Application settings and logging setup.

Settings are read from environment variables (and a ``.env`` file in the
working directory) by pydantic-settings. Account codes default to the chart
of accounts the ERP ships with.
"""

import logging
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class AccountingSettings(BaseSettings):
    """Chart-of-accounts mapping used when building ERP journal legs."""

    model_config = SettingsConfigDict(
        env_prefix="IFRS16_ACCOUNT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    rou_asset: str = "1600"
    accumulated_amortization: str = "1650"
    lease_liability: str = "2400"
    interest_expense: str = "7200"
    amortization_expense: str = "6200"
    cash: str = "1000"


class ERPSettings(BaseSettings):
    """Connection settings for the ERP HTTP API."""

    model_config = SettingsConfigDict(
        env_prefix="IFRS16_ERP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    base_url: str = ""
    api_key: str = ""
    timeout_seconds: float = 30.0


CONSOLE_HANDLER_NAME = "ifrs16-console"


def configure_logging(level: str = "WARNING", logger_name: Optional[str] = "ifrs16") -> logging.Logger:
    """Attach a console handler to the application logger.

    Calling it again replaces the console handler, so the new one writes to
    the current ``sys.stderr``; handlers are not duplicated.

    Args:
        level: Logging level name (DEBUG, INFO, WARNING, ...)
        logger_name: Logger to configure, None for the root logger

    Returns:
        The configured logger
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        raise ValueError(f"Unknown log level: '{level}'")

    logger = logging.getLogger(logger_name)
    logger.setLevel(numeric_level)

    for handler in [h for h in logger.handlers if h.get_name() == CONSOLE_HANDLER_NAME]:
        logger.removeHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.set_name(CONSOLE_HANDLER_NAME)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    console_handler.setLevel(numeric_level)
    logger.addHandler(console_handler)

    return logger
