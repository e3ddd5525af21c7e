"""
Configuration management for send_select.

Uses pydantic-settings for environment variable loading and validation.
"""

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="SEND_SELECT_",
        env_file=".env",
        env_file_encoding="utf-8",
    )

    # Pooled SEND data store
    db_backend: Literal["sqlite", "mssql"] = Field(
        default="sqlite",
        description="Database backend holding the pooled SEND domains",
    )
    db_path: Path = Field(default=Path("data/send.db"), description="SQLite database file")

    # SQL Server connection (db_backend = "mssql")
    db_server: str = Field(default="localhost", description="SQL Server hostname")
    db_name: str = Field(default="send", description="Database name")
    db_driver: str = Field(
        default="ODBC Driver 18 for SQL Server",
        description="ODBC driver name",
    )
    db_trusted_connection: bool = Field(
        default=True,
        description="Use Windows authentication",
    )
    db_username: str | None = Field(default=None, description="SQL username (if not trusted)")
    db_password: str | None = Field(default=None, description="SQL password (if not trusted)")

    # Max number of ids per IN (...) list
    query_batch_size: int = Field(default=500, gt=0, description="Ids per query batch")

    # CDISC controlled terminology
    ct_file: Path | None = Field(default=None, description="CDISC SEND CT text file")
    ct_url: str = Field(
        default="https://evs.nci.nih.gov/ftp1/CDISC/SEND/SEND%20Terminology.txt",
        description="Download location of the CDISC SEND CT text file",
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging level",
    )

    @property
    def default_ct_path(self) -> Path:
        """Where download_ct_file stores the CT file unless told otherwise."""
        return self.db_path.parent / "SEND_Terminology.txt"

    def connection_string(self) -> str:
        """Build connection string for mssql-python.

        Format: SERVER=host;DATABASE=db;UID=user;PWD=pass;...
        Note: mssql-python handles the ODBC driver internally.
        """
        parts = [
            f"SERVER={self.db_server}",
            f"DATABASE={self.db_name}",
        ]
        if self.db_trusted_connection:
            parts.append("Trusted_Connection=yes")
        else:
            if self.db_username:
                parts.append(f"UID={self.db_username}")
            if self.db_password:
                parts.append(f"PWD={self.db_password}")
        parts.append("TrustServerCertificate=yes")
        parts.append("Encrypt=yes")
        return ";".join(parts)


# Global settings instance
settings = Settings()
