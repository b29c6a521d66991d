"""
Configuration schema and loading for buildbeacon.

Uses Pydantic for validation and Dynaconf for multi-source loading.
Settings are frozen (immutable) after construction and loaded once at
startup; the reporting pipeline only ever reads them.
"""

import os
import re
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, SecretStr, field_validator, model_validator

from buildbeacon.core.hostname import is_valid_hostname, is_valid_port

DEFAULT_BASE_URL = "https://app.datadoghq.com/api/"

ENVVAR_PREFIX = "BUILDBEACON"

_WHITESPACE = re.compile(r"\s")


class BuildBeaconSettings(BaseModel):
    """Top-level buildbeacon configuration.

    Example YAML:
        api_key: ${DD_API_KEY}
        hostname: ci-controller.example.com
        blacklist: "scratch-job, nightly-cleanup"
        tag_node: true
        use_proxy: true
        proxy_hostname: proxy.internal
        proxy_port: "3128"
    """

    model_config = {"frozen": True}

    api_key: SecretStr = Field(description="Datadog API key")
    hostname: str | None = Field(
        default=None,
        description="Static hostname override, tried before any discovered hostname",
    )
    blacklist: str = Field(
        default="",
        description="Comma-separated job names excluded from all reporting",
    )
    tag_node: bool = Field(default=False, description="Tag payloads with the execution node name")
    use_proxy: bool = Field(default=False, description="Route API calls through an HTTP proxy")
    proxy_hostname: str | None = Field(default=None, description="HTTP proxy host")
    proxy_port: str | None = Field(default=None, description="HTTP proxy port (1-65535)")
    base_url: str = Field(default=DEFAULT_BASE_URL, description="Datadog API base URL")
    timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Connect/read timeout for each API call",
    )

    @field_validator("api_key", "hostname", "proxy_hostname", "proxy_port", "blacklist", mode="before")
    @classmethod
    def coerce_scalars_to_str(cls, v: Any) -> Any:
        """Dynaconf parses numeric-looking env values (ports, keys) as ints."""
        if isinstance(v, int | float) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator("hostname")
    @classmethod
    def blank_hostname_is_unset(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = v.strip()
        return v or None

    @field_validator("blacklist")
    @classmethod
    def normalize_blacklist(cls, v: str) -> str:
        """Strip whitespace, drop empty entries and lower-case job names."""
        entries = _WHITESPACE.sub("", v).lower().split(",")
        return ",".join(entry for entry in entries if entry)

    @field_validator("proxy_hostname")
    @classmethod
    def normalize_proxy_hostname(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = _WHITESPACE.sub("", v).lower()
        return v or None

    @field_validator("base_url")
    @classmethod
    def base_url_has_trailing_slash(cls, v: str) -> str:
        if not v.endswith("/"):
            return v + "/"
        return v

    @model_validator(mode="after")
    def validate_proxy_settings(self) -> "BuildBeaconSettings":
        """A usable proxy host and port are required when the proxy is enabled."""
        if not self.use_proxy:
            return self
        if self.proxy_hostname is None:
            raise ValueError("proxy_hostname is required when use_proxy is enabled")
        if not is_valid_hostname(self.proxy_hostname):
            raise ValueError(f"proxy_hostname must be a valid hostname, got {self.proxy_hostname!r}")
        if not is_valid_port(self.proxy_port):
            raise ValueError(f"proxy_port must be an integer value between 1 and 65535, got {self.proxy_port!r}")
        return self

    @property
    def blacklisted_jobs(self) -> frozenset[str]:
        """Lower-cased job names excluded from reporting."""
        if not self.blacklist:
            return frozenset()
        return frozenset(self.blacklist.split(","))

    @property
    def proxy_url(self) -> str | None:
        """HTTP proxy URL, or None when the proxy is disabled."""
        if not self.use_proxy:
            return None
        return f"http://{self.proxy_hostname}:{self.proxy_port}"


# Regex pattern for ${VAR} or ${VAR:-default} syntax
_ENV_VAR_PATTERN = re.compile(r"\$\{([A-Z_][A-Z0-9_]*)(?::-([^}]*))?\}")


def _expand_env_vars(config: dict[str, Any]) -> dict[str, Any]:
    """Expand ${VAR} and ${VAR:-default} patterns in string config values.

    Unresolvable references are left as-is.
    """

    def replacer(match: re.Match[str]) -> str:
        env_value = os.environ.get(match.group(1))
        if env_value is not None:
            return env_value
        default = match.group(2)
        if default is not None:
            return default
        return match.group(0)

    return {k: _ENV_VAR_PATTERN.sub(replacer, v) if isinstance(v, str) else v for k, v in config.items()}


def load_settings(config_path: Path | None = None) -> BuildBeaconSettings:
    """Load settings from an optional YAML file with environment overrides.

    Uses Dynaconf for multi-source loading with precedence:
    1. Environment variables (BUILDBEACON_*) - highest priority
    2. Config file (YAML)
    3. Defaults from the Pydantic schema - lowest priority

    Args:
        config_path: Path to YAML configuration file, or None for
            environment-only configuration

    Returns:
        Validated BuildBeaconSettings instance

    Raises:
        ValidationError: If configuration fails Pydantic validation
        FileNotFoundError: If config file doesn't exist
    """
    from dynaconf import Dynaconf

    # Dynaconf silently accepts missing files
    if config_path is not None and not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    dynaconf_settings = Dynaconf(
        envvar_prefix=ENVVAR_PREFIX,
        settings_files=[str(config_path)] if config_path is not None else [],
        environments=False,
        load_dotenv=False,
    )

    # Dynaconf returns uppercase keys and its own bookkeeping entries
    internal_keys = {"LOAD_DOTENV", "ENVIRONMENTS", "SETTINGS_FILES"}
    raw_config = {k.lower(): v for k, v in dynaconf_settings.as_dict().items() if k not in internal_keys}

    raw_config = _expand_env_vars(raw_config)

    return BuildBeaconSettings(**raw_config)
