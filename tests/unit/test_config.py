"""Unit tests for configuration loading."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from core.config import DEFAULT_SCHEMA_NAME, DEFAULT_TARGET_URL, load_config
from core.exceptions import ConfigurationError


@pytest.mark.unit
def test_defaults_without_environment():
    config = load_config({})

    assert config.schema_name == DEFAULT_SCHEMA_NAME == "SO_Auto_Extraction_Schema"
    assert config.target.base_url == DEFAULT_TARGET_URL
    assert config.proxy.port == 8080
    assert config.proxy.cloud_foundry is False
    assert config.tls.key_file == Path("certs/lab02.key")
    assert config.tls.cert_file == Path("certs/lab02.pem")
    assert config.tls.passphrase == "password"
    assert config.logging.level == "DEBUG"
    assert config.logging.file == Path("log/soeproxy.log")
    assert config.limits.max_body_size == 52428800


@pytest.mark.unit
def test_environment_overrides():
    config = load_config(
        {
            "DOX_SCHEMA": "Custom_Schema",
            "DOX_TARGET_URL": "https://dox.example",
            "PORT": "9090",
            "SSL_KEY": "/etc/tls/key.pem",
            "SSL_CERT": "/etc/tls/cert.pem",
            "SSL_PASSPHRASE": "secret",
            "LOG_LEVEL": "info",
            "LOG_FILE": "/var/log/proxy.log",
        }
    )

    assert config.schema_name == "Custom_Schema"
    assert config.target.base_url == "https://dox.example"
    assert config.proxy.port == 9090
    assert config.tls.key_file == Path("/etc/tls/key.pem")
    assert config.tls.passphrase == "secret"
    assert config.logging.level == "info"
    assert config.logging.file == Path("/var/log/proxy.log")


@pytest.mark.unit
def test_empty_values_fall_back_to_defaults():
    config = load_config({"DOX_SCHEMA": "", "PORT": ""})
    assert config.schema_name == DEFAULT_SCHEMA_NAME
    assert config.proxy.port == 8080


@pytest.mark.unit
def test_cloud_foundry_logs_to_console_only():
    config = load_config({"VCAP_APPLICATION": '{"application_name":"soe"}', "LOG_FILE": "x.log"})
    assert config.proxy.cloud_foundry is True
    assert config.logging.file is None


@pytest.mark.unit
def test_invalid_port_raises_configuration_error():
    with pytest.raises(ConfigurationError):
        load_config({"PORT": "eighty"})


@pytest.mark.unit
def test_unknown_log_level_raises_configuration_error():
    with pytest.raises(ConfigurationError):
        load_config({"LOG_LEVEL": "verbose"})


@pytest.mark.unit
def test_config_is_immutable():
    config = load_config({})
    with pytest.raises(ValidationError):
        config.schema_.name = "Other"
