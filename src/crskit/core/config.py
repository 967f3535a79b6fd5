"""
Configuration settings for crskit.
"""

from pathlib import Path
from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Library settings with environment variable support.

    Attributes:
        epsg_database: Path to an EPSG sqlite database; when unset the
            PROJ database shipped with pyproj is used instead
        sql_dialect: SQL flavour spoken by the EPSG database
        wkt_indent: Indentation used when formatting WKT (None for one line)
        log_level: Default log level for ``setup_logging``
        environment: Development enables colored console logs
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_prefix="CRSKIT_",
    )

    # EPSG database
    epsg_database: Optional[Path] = None
    sql_dialect: Literal["access", "ansi", "oracle", "postgres"] = "access"

    # WKT output
    wkt_indent: Optional[int] = None

    # Logging
    log_level: Optional[str] = None

    # Environment
    environment: Literal["development", "production"] = "development"

    @property
    def has_epsg_database(self) -> bool:
        """Tell whether a SQL EPSG database is configured."""
        return self.epsg_database is not None


# Global settings instance
settings = Settings()
