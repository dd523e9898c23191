"""Configuration models.

This module provides the Pydantic models for repostage settings. Every
model is frozen and ignores unknown keys, so configuration files may carry
sections for other tools.
"""

from enum import StrEnum
from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field


class LogLevel(StrEnum):
    """Log level threshold values.

    Values are ordered from most verbose (debug) to least verbose (error).
    """

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class LogFormat(StrEnum):
    """Log output format values."""

    JSON = "json"
    TEXT = "text"


class LoggingConfig(BaseModel):
    """Logging configuration section.

    Attributes:
        level: Log level threshold.
        format: Log output format.
        file: Path to log file (empty logs to stderr).
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    level: LogLevel = LogLevel.WARNING
    format: LogFormat = LogFormat.TEXT
    file: str = ""


class GitHubConfig(BaseModel):
    """GitHub REST API configuration section.

    Attributes:
        api_url: Base URL of the REST API.
        token: Bearer token; requests are anonymous when None.
        user_agent: Value of the User-Agent header.
        api_version: Value of the X-GitHub-Api-Version header.
        timeout: Request timeout in seconds.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    api_url: str = "https://api.github.com"
    token: str | None = None
    user_agent: str = "repostage"
    api_version: str = "2022-11-28"
    timeout: float = Field(default=30.0, gt=0)


class GitConfig(BaseModel):
    """Local git and file system backend configuration section.

    Attributes:
        default_name: Committer name used when no identity is configured.
        default_email: Committer email used when no identity is configured.
        exclude: Names excluded from file system indexes at any depth.
        exclude_root: Names excluded from file system indexes at the root.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    default_name: str = "repostage"
    default_email: str = "repostage@localhost"
    exclude: tuple[str, ...] = (".git",)
    exclude_root: tuple[str, ...] = ("target",)


class Config(BaseModel):
    """Top-level repostage configuration.

    Attributes:
        logging: Logging settings.
        github: GitHub REST API settings.
        git: Local backend settings.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    github: GitHubConfig = Field(default_factory=GitHubConfig)
    git: GitConfig = Field(default_factory=GitConfig)
