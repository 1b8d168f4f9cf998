"""Configuration management for Intentforge.

This module defines the configuration schema using Pydantic settings,
supporting TOML files, environment variables, and programmatic overrides.

Configuration loading priority (highest to lowest):
1. Programmatic overrides (passed to IntentForgeConfig constructor)
2. Environment variables (INTENTFORGE_* prefix)
3. TOML configuration file
4. Default values defined in this module

Example TOML configuration:
    [storage]
    projects_dir = "/var/lib/intentforge/projects"

    [build]
    executor = "docker"
    timeout_seconds = 600

Example environment variable override:
    INTENTFORGE_AI__PROVIDER="anthropic"
    INTENTFORGE_AI__ANTHROPIC_API_KEY="sk-..."
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import tomli
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseConfig(BaseSettings):
    """Record store configuration.

    Attributes:
        backend: Store implementation ("memory" or "sql")
        url: SQLAlchemy async database URL (used when backend is "sql")
        echo: Enable SQL query logging
    """

    model_config = SettingsConfigDict(
        env_prefix="INTENTFORGE_DATABASE__",
        extra="forbid",
    )

    backend: str = Field(default="memory")
    url: str = Field(
        default="sqlite+aiosqlite:///./intentforge.db",
        description="SQLAlchemy async connection URL",
    )
    echo: bool = Field(default=False)

    @field_validator("backend")
    @classmethod
    def validate_backend(cls, v: str) -> str:
        """Validate store backend is recognized."""
        valid_backends = {"memory", "sql"}
        v_lower = v.lower()
        if v_lower not in valid_backends:
            raise ValueError(f"Invalid store backend: {v}. Must be one of {valid_backends}")
        return v_lower


class StorageConfig(BaseSettings):
    """On-disk storage locations.

    Attributes:
        projects_dir: Root under which each project gets its own directory
        archives_dir: Directory where download archives are written
    """

    model_config = SettingsConfigDict(
        env_prefix="INTENTFORGE_STORAGE__",
        extra="forbid",
    )

    projects_dir: Path = Field(default=Path("./storage/projects"))
    archives_dir: Path = Field(default=Path("./storage/archives"))


class BuildConfig(BaseSettings):
    """Build and test execution configuration.

    Attributes:
        executor: Where commands run ("local" subprocess or "docker" container)
        install_command: Dependency installation command
        build_command: Build command
        test_command: Test command
        timeout_seconds: Timeout applied to each command
        run_tests: Run the test command after a successful build
    """

    model_config = SettingsConfigDict(
        env_prefix="INTENTFORGE_BUILD__",
        extra="forbid",
    )

    executor: str = Field(default="local")
    install_command: list[str] = Field(
        default_factory=lambda: ["npm", "install", "--ignore-scripts"]
    )
    build_command: list[str] = Field(default_factory=lambda: ["npm", "run", "build"])
    test_command: list[str] = Field(
        default_factory=lambda: ["npx", "vitest", "run", "--passWithNoTests"]
    )
    timeout_seconds: int = Field(default=300, ge=30, le=3600)  # 5 min
    run_tests: bool = Field(default=True)

    @field_validator("executor")
    @classmethod
    def validate_executor(cls, v: str) -> str:
        """Validate executor kind is recognized."""
        valid_executors = {"local", "docker"}
        v_lower = v.lower()
        if v_lower not in valid_executors:
            raise ValueError(f"Invalid executor: {v}. Must be one of {valid_executors}")
        return v_lower


class DockerConfig(BaseSettings):
    """Container executor configuration.

    Attributes:
        image: Image used to run install/build/test commands
        memory_limit: Container memory limit (docker syntax, e.g. "1g")
        network_mode: Docker network mode for the container
        rootless: Use rootless Docker daemon
    """

    model_config = SettingsConfigDict(
        env_prefix="INTENTFORGE_DOCKER__",
        extra="forbid",
    )

    image: str = Field(default="node:20-alpine")
    memory_limit: str = Field(default="1g")
    network_mode: str = Field(default="bridge")
    rootless: bool = Field(default=True)


class AIConfig(BaseSettings):
    """AI completion provider configuration.

    Attributes:
        provider: Provider name (anthropic, openai, ollama, mock)
        anthropic_api_key: API key for Anthropic
        openai_api_key: API key for OpenAI
        model: Model override (provider default when None)
        max_tokens: Maximum tokens in a completion
        temperature: Sampling temperature
        timeout_seconds: HTTP timeout for provider calls
        anthropic_url: Anthropic API base URL
        openai_url: OpenAI API base URL
        ollama_url: Ollama API base URL
    """

    model_config = SettingsConfigDict(
        env_prefix="INTENTFORGE_AI__",
        extra="forbid",
    )

    provider: str = Field(default="mock")
    anthropic_api_key: str | None = Field(default=None)
    openai_api_key: str | None = Field(default=None)
    model: str | None = Field(default=None)
    max_tokens: int = Field(default=4096, ge=1, le=200000)
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    timeout_seconds: int = Field(default=60, ge=1, le=600)
    anthropic_url: str = Field(default="https://api.anthropic.com")
    openai_url: str = Field(default="https://api.openai.com")
    ollama_url: str = Field(default="http://localhost:11434")

    @field_validator("provider")
    @classmethod
    def validate_provider(cls, v: str) -> str:
        """Normalize provider name."""
        return v.lower()


class LoggingConfig(BaseSettings):
    """Logging configuration.

    Attributes:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format: Log format (json or console)
        file: Optional log file path (None for stdout only)
        rotation_size_mb: Log file rotation size in megabytes
        retention_count: Number of rotated log files to keep
    """

    model_config = SettingsConfigDict(
        env_prefix="INTENTFORGE_LOGGING__",
        extra="forbid",
    )

    level: str = Field(default="INFO")
    format: str = Field(default="json")
    file: Path | None = Field(default=None)
    rotation_size_mb: int = Field(default=50, ge=1, le=1000)
    retention_count: int = Field(default=10, ge=1, le=100)

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate log level is recognized."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v_upper

    @field_validator("format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        """Validate log format is recognized."""
        valid_formats = {"json", "console"}
        v_lower = v.lower()
        if v_lower not in valid_formats:
            raise ValueError(f"Invalid log format: {v}. Must be one of {valid_formats}")
        return v_lower


class WebConfig(BaseSettings):
    """HTTP API configuration.

    Attributes:
        host: Bind host address
        port: Bind port number
        cors_origins: Allowed CORS origins
        rate_limit_requests: Requests allowed per client per window
        rate_limit_window_seconds: Length of the rate limit window
    """

    model_config = SettingsConfigDict(
        env_prefix="INTENTFORGE_WEB__",
        extra="forbid",
    )

    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000, ge=1, le=65535)
    cors_origins: list[str] = Field(default_factory=lambda: ["http://localhost:3000"])
    rate_limit_requests: int = Field(default=100, ge=1, le=100000)
    rate_limit_window_seconds: int = Field(default=900, ge=1, le=86400)  # 15 min


class IntentForgeConfig(BaseSettings):
    """Root configuration for Intentforge.

    Aggregates all subsystem configurations. Configuration can be loaded from:
    1. TOML files (using load_config function)
    2. Environment variables (INTENTFORGE_* prefix)
    3. Direct instantiation with keyword arguments

    Environment variable format for nested config:
        INTENTFORGE_<SECTION>__<KEY>=value
    """

    model_config = SettingsConfigDict(
        env_prefix="INTENTFORGE_",
        env_nested_delimiter="__",
        extra="forbid",
    )

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    build: BuildConfig = Field(default_factory=BuildConfig)
    docker: DockerConfig = Field(default_factory=DockerConfig)
    ai: AIConfig = Field(default_factory=AIConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    web: WebConfig = Field(default_factory=WebConfig)


def load_config(config_path: Path | None = None) -> IntentForgeConfig:
    """Load configuration from TOML file with environment variable overrides.

    Configuration search order (first found is used):
    1. config_path if explicitly provided
    2. ./intentforge.toml (current directory)
    3. ~/.config/intentforge/config.toml (user config directory)

    Args:
        config_path: Explicit path to TOML config file. If None, searches
                    default locations.

    Returns:
        IntentForgeConfig: Fully resolved configuration instance.

    Raises:
        FileNotFoundError: If config_path is explicitly provided but doesn't exist.
        ValueError: If TOML file contains invalid configuration.
    """
    toml_data: dict[str, Any] = {}

    if config_path is not None:
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
        selected_path = config_path
    else:
        search_paths = [
            Path.cwd() / "intentforge.toml",
            Path.home() / ".config" / "intentforge" / "config.toml",
        ]
        selected_path = None
        for path in search_paths:
            if path.exists():
                selected_path = path
                break

    if selected_path is not None:
        with open(selected_path, "rb") as f:
            toml_data = tomli.load(f)

    # Pydantic overlays environment variables on top of the TOML values
    try:
        return IntentForgeConfig(**toml_data)
    except Exception as e:
        if selected_path:
            raise ValueError(f"Invalid configuration in {selected_path}: {e}") from e
        raise ValueError(f"Invalid configuration: {e}") from e
