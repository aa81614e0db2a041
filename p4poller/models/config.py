"""Configuration models for the Perforce poller."""

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from p4poller.errors import ConfigurationError, MissingConfigurationError

DEFAULT_DIAGNOSTIC_LOG = "/tmp/perforce.log"


class PerforceConfig(BaseModel):
    """Connection settings for one tracked depot path."""

    model_config = ConfigDict(extra="forbid")

    clientspec: str = Field(default=..., min_length=1, description="Workspace (client) name")
    port: str = Field(default=..., min_length=1, description="P4PORT, e.g. ssl:perforce:1666")
    user: str = Field(default=..., min_length=1, description="Perforce user name")
    password: str = Field(default=..., min_length=1, description="Password or ticket")
    path: str = Field(default=..., min_length=1, description="Depot path to watch, e.g. //depot/proj/...")
    interactive: bool = Field(
        default=False, description="If True, p4 may prompt on the caller's terminal"
    )
    p4_executable: str = Field(default="p4", description="p4 binary to invoke")
    command_timeout: float | None = Field(
        default=300.0, gt=0, description="Seconds before a p4 command is abandoned"
    )
    diagnostic_log: str | None = Field(
        default=DEFAULT_DIAGNOSTIC_LOG,
        description="Append-only log of every p4 command and its records. None disables it.",
    )

    @classmethod
    def from_options(cls, **options: object) -> "PerforceConfig":
        """Build a config from keyword options, naming any missing required field.

        Required options that are None or empty strings count as missing.

        Raises:
            MissingConfigurationError: If a required field is absent
            ConfigurationError: If an option is unknown or has an invalid value
        """
        required = {name for name, field in cls.model_fields.items() if field.is_required()}
        present = {
            key: value
            for key, value in options.items()
            if not (key in required and value in (None, ""))
        }
        try:
            return cls(**present)
        except ValidationError as e:
            missing = [
                str(error["loc"][0])
                for error in e.errors()
                if error["type"] == "missing" and error["loc"]
            ]
            if missing:
                raise MissingConfigurationError(missing) from e
            raise ConfigurationError(f"Invalid Perforce configuration: {e}") from e


class LoggingConfig(BaseModel):
    """Configuration for logging."""

    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    json_logs: bool = Field(
        default=True,
        description="If True, output JSON logs. If False, use console format.",
    )
    log_file: str | None = Field(
        default=None,
        description="Optional path to log file. If None, logs only to stderr.",
    )


class AppConfig(BaseSettings):
    """Main application configuration.

    Values may also come from environment variables with the P4POLLER_ prefix,
    e.g. ``P4POLLER_PERFORCE__PORT``.
    """

    model_config = SettingsConfigDict(
        env_prefix="P4POLLER_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    perforce: PerforceConfig
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
