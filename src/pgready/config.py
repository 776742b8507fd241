import getpass
import re
from pathlib import Path
from typing import Any, List, Optional, Union
import yaml
from pydantic import AliasChoices, Field, SecretStr, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from .domain.models import ConnectionTarget, TableIdentifier, parse_table_list
from .exceptions import ConfigurationError

DEFAULT_HOST = "localhost"
DEFAULT_PORT = 5432
DEFAULT_TIMEOUT = 60.0
DEFAULT_CONN_TIMEOUT = 5.0
DEFAULT_RETRY_INTERVAL = 1.0

_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(h|ms|m|s|us|µs|ns)")
_DURATION_UNITS = {
    "h": 3600.0,
    "m": 60.0,
    "s": 1.0,
    "ms": 1e-3,
    "us": 1e-6,
    "µs": 1e-6,
    "ns": 1e-9,
}


def parse_duration(value: Union[str, int, float]) -> float:
    """
    Convert a duration to seconds. Plain numbers are seconds; strings may
    also use unit suffixes such as '500ms', '30s' or '1m30s'.
    """
    if isinstance(value, (int, float)):
        return float(value)

    text = value.strip()
    try:
        return float(text)
    except ValueError:
        pass

    pos, total = 0, 0.0
    for match in _DURATION_PART.finditer(text):
        if match.start() != pos:
            break
        total += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        pos = match.end()
    if not text or pos != len(text):
        raise ValueError(f"invalid duration '{value}'")
    return total


def _default_user() -> str:
    try:
        return getpass.getuser()
    except (KeyError, OSError):
        return "postgres"


class ProbeSettings(BaseSettings):
    """
    Everything a probe run needs, resolved from (highest first) explicit
    arguments, a YAML file, libpq-style environment variables and defaults.
    """
    # Case sensitive so that unrelated variables such as $HOST or $USER
    # never satisfy the lowercase field aliases.
    model_config = SettingsConfigDict(extra="ignore", case_sensitive=True)

    host: str = Field(DEFAULT_HOST, validation_alias=AliasChoices("host", "PGHOST"))
    port: int = Field(DEFAULT_PORT, gt=0, le=65535, validation_alias=AliasChoices("port", "PGPORT"))
    user: str = Field(
        default_factory=_default_user,
        validation_alias=AliasChoices("user", "username", "PGUSER"),
    )
    password: Optional[SecretStr] = Field(None, validation_alias=AliasChoices("password", "PGPASSWORD"))
    dbname: Optional[str] = Field(None, validation_alias=AliasChoices("dbname", "PGDATABASE"))
    sslmode: Optional[str] = Field("disable", validation_alias=AliasChoices("sslmode", "PGSSLMODE"))
    driver: str = Field("postgresql+psycopg2", validation_alias=AliasChoices("driver", "PGREADY_DRIVER"))

    tables: str = Field("", validation_alias=AliasChoices("tables", "PGREADY_TABLES"))
    timeout: float = Field(DEFAULT_TIMEOUT, gt=0, validation_alias=AliasChoices("timeout", "PGREADY_TIMEOUT"))
    conn_timeout: float = Field(
        DEFAULT_CONN_TIMEOUT, gt=0,
        validation_alias=AliasChoices("conn_timeout", "PGREADY_CONN_TIMEOUT"),
    )
    retry_interval: float = Field(
        DEFAULT_RETRY_INTERVAL, ge=0,
        validation_alias=AliasChoices("retry_interval", "PGREADY_RETRY_INTERVAL"),
    )
    quiet: bool = Field(False, validation_alias=AliasChoices("quiet", "PGREADY_QUIET"))
    classify_timeouts: bool = Field(
        True, validation_alias=AliasChoices("classify_timeouts", "PGREADY_CLASSIFY_TIMEOUTS"),
    )

    @field_validator("timeout", "conn_timeout", "retry_interval", mode="before")
    @classmethod
    def _parse_duration(cls, value: Any) -> Any:
        if isinstance(value, str):
            return parse_duration(value)
        return value

    @field_validator("password", mode="before")
    @classmethod
    def _password_as_text(cls, value: Any) -> Any:
        # Unquoted YAML passwords such as 918273645 arrive as numbers
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("tables", mode="before")
    @classmethod
    def _join_tables(cls, value: Any) -> Any:
        # YAML files may list tables instead of using a comma string
        if isinstance(value, (list, tuple)):
            return ",".join(str(v) for v in value)
        return value

    @model_validator(mode="after")
    def _default_dbname(self) -> "ProbeSettings":
        if not self.dbname:
            self.dbname = self.user
        return self

    @classmethod
    def load(cls, **overrides: Any) -> "ProbeSettings":
        overrides = {k: v for k, v in overrides.items() if v is not None}
        try:
            return cls(**overrides)
        except ValidationError as e:
            # Rejected input values are left out; they may be secrets
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or 'settings'}: {err['msg']}"
                for err in e.errors(include_input=False, include_url=False)
            )
            raise ConfigurationError(f"Invalid configuration: {problems}") from None

    @classmethod
    def from_yaml(cls, config_path: Path, **overrides: Any) -> "ProbeSettings":
        if not config_path.exists():
            raise ConfigurationError(f"Config file not found: {config_path}")

        try:
            with open(config_path, "r") as f:
                raw_config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid configuration format: {e}")
        if not isinstance(raw_config, dict):
            raise ConfigurationError(f"Invalid configuration format: expected a mapping in {config_path}")

        raw_config.update({k: v for k, v in overrides.items() if v is not None})
        return cls.load(**raw_config)

    def target(self) -> ConnectionTarget:
        return ConnectionTarget(
            host=self.host,
            port=self.port,
            user=self.user,
            password=self.password,
            database=self.dbname,
            driver=self.driver,
            sslmode=self.sslmode,
        )

    def required_tables(self) -> List[TableIdentifier]:
        return parse_table_list(self.tables)
