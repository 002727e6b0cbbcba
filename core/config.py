"""Configuration models and loading."""

import os
from collections.abc import Mapping
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from core.exceptions import ConfigurationError

DEFAULT_SCHEMA_NAME = "SO_Auto_Extraction_Schema"
DEFAULT_TARGET_URL = "https://aiservices-dox.cfapps.eu10.hana.ondemand.com"
DEFAULT_LOG_FILE = "log/soeproxy.log"


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class ProxySettings(_Frozen):
    port: int = 8080
    https_port: int = 443
    cloud_foundry: bool = False


class TargetSettings(_Frozen):
    base_url: str = DEFAULT_TARGET_URL
    timeout: float = 300.0


class SchemaSettings(_Frozen):
    name: str = DEFAULT_SCHEMA_NAME


class TLSSettings(_Frozen):
    key_file: Path = Path("certs/lab02.key")
    cert_file: Path = Path("certs/lab02.pem")
    passphrase: str = "password"


class LimitSettings(_Frozen):
    max_body_size: int = 50 * 1024 * 1024  # 50MB
    keep_alive_timeout: int = 5


class LoggingSettings(_Frozen):
    level: str = "DEBUG"
    file: Path | None = Path(DEFAULT_LOG_FILE)


class Config(_Frozen):
    proxy: ProxySettings = Field(default_factory=ProxySettings)
    target: TargetSettings = Field(default_factory=TargetSettings)
    schema_: SchemaSettings = Field(default_factory=SchemaSettings, alias="schema")
    tls: TLSSettings = Field(default_factory=TLSSettings)
    limits: LimitSettings = Field(default_factory=LimitSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    @property
    def schema_name(self) -> str:
        return self.schema_.name


def load_config(environ: Mapping[str, str] | None = None) -> Config:
    """Build the process-wide configuration from environment variables.

    Unset variables fall back to the model defaults. On Cloud Foundry
    (``VCAP_APPLICATION`` present) logging goes to the console only.
    """
    env = os.environ if environ is None else environ
    cloud_foundry = "VCAP_APPLICATION" in env

    data: dict[str, dict[str, object]] = {
        "proxy": {"cloud_foundry": cloud_foundry},
        "target": {},
        "schema": {},
        "tls": {},
        "logging": {},
    }
    _put(data["proxy"], "port", env.get("PORT"))
    _put(data["target"], "base_url", env.get("DOX_TARGET_URL"))
    _put(data["schema"], "name", env.get("DOX_SCHEMA"))
    _put(data["tls"], "key_file", env.get("SSL_KEY"))
    _put(data["tls"], "cert_file", env.get("SSL_CERT"))
    _put(data["tls"], "passphrase", env.get("SSL_PASSPHRASE"))
    _put(data["logging"], "level", env.get("LOG_LEVEL"))
    if cloud_foundry:
        data["logging"]["file"] = None
    else:
        _put(data["logging"], "file", env.get("LOG_FILE"))

    try:
        config = Config.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e

    if config.logging.level.upper() not in ("DEBUG", "INFO", "WARNING", "ERROR"):
        raise ConfigurationError(f"Unknown log level: {config.logging.level}")
    return config


def _put(section: dict[str, object], key: str, value: str | None) -> None:
    # Empty strings count as unset, like `process.env.X || default`
    if value:
        section[key] = value
