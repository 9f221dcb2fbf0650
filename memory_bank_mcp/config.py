"""Configuration for the memory bank MCP server.

Settings are read from environment variables prefixed with ``MEMORY_BANK_``
(or a ``.env`` file) and converted once into an immutable ServerOptions
value that the server holds for its whole lifetime.
"""

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_PORT = 7331
DEFAULT_ALLOWED_ORIGINS = ("http://localhost:5173", "http://localhost:3000")
DEFAULT_MAX_FILE_SIZE = 1024 * 1024
DEFAULT_MAX_BODY_SIZE = 1024 * 1024


class SecurityConfig(BaseModel):
    """Security policy configuration."""

    model_config = ConfigDict(frozen=True)

    max_file_size: int = Field(default=DEFAULT_MAX_FILE_SIZE, ge=0)
    allowed_extensions: tuple[str, ...] = (".md", ".txt", ".json")
    allowed_paths: tuple[str, ...] = ()
    enable_content_sanitization: bool = True


class PlatformCapabilities(BaseModel):
    model_config = ConfigDict(frozen=True)

    mcp_integration: bool = False
    ai_chat_provider: bool = False
    custom_commands: bool = False


class PlatformConfig(BaseModel):
    """Descriptor of the host platform the server runs inside."""

    model_config = ConfigDict(frozen=True)

    name: str = "standalone"
    version: str = "0.0.0"
    capabilities: PlatformCapabilities = Field(default_factory=PlatformCapabilities)


class ServerOptions(BaseModel):
    """Immutable server configuration, set once at construction."""

    model_config = ConfigDict(frozen=True)

    host: str = "127.0.0.1"
    port: int = Field(default=DEFAULT_PORT, ge=0, le=65535)
    allowed_origins: tuple[str, ...] = DEFAULT_ALLOWED_ORIGINS
    max_body_size: int = Field(default=DEFAULT_MAX_BODY_SIZE, ge=1)
    security: SecurityConfig = Field(default_factory=SecurityConfig)
    platform: PlatformConfig = Field(default_factory=PlatformConfig)
    enable_logging: bool = True
    enable_metrics: bool = False
    debug: bool = False


class Settings(BaseSettings):
    """Environment-driven settings."""

    model_config = SettingsConfigDict(
        env_prefix="MEMORY_BANK_",
        env_file=".env",
        extra="ignore",
    )

    host: str = "127.0.0.1"
    port: int = DEFAULT_PORT
    workspace: Path = Field(default_factory=Path.cwd)
    allowed_origins: list[str] = list(DEFAULT_ALLOWED_ORIGINS)
    max_body_size: int = DEFAULT_MAX_BODY_SIZE

    # Security policy
    max_file_size: int = DEFAULT_MAX_FILE_SIZE
    allowed_extensions: list[str] = [".md", ".txt", ".json"]
    allowed_paths: list[str] = []
    enable_content_sanitization: bool = True

    # Observability
    enable_logging: bool = True
    enable_metrics: bool = False
    log_level: str = "INFO"

    platform_name: str = "standalone"
    debug: bool = False

    def to_options(self) -> ServerOptions:
        """Freeze these settings into ServerOptions."""
        from . import __version__

        return ServerOptions(
            host=self.host,
            port=self.port,
            allowed_origins=tuple(self.allowed_origins),
            max_body_size=self.max_body_size,
            security=SecurityConfig(
                max_file_size=self.max_file_size,
                allowed_extensions=tuple(ext.lower() for ext in self.allowed_extensions),
                allowed_paths=tuple(self.allowed_paths),
                enable_content_sanitization=self.enable_content_sanitization,
            ),
            platform=PlatformConfig(name=self.platform_name, version=__version__),
            enable_logging=self.enable_logging,
            enable_metrics=self.enable_metrics,
            debug=self.debug,
        )
