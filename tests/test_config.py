from pathlib import Path

import pytest

from pharmafield.config import Settings, configure_logging
from pharmafield.errors import ConfigError


def test_defaults():
    settings = Settings.from_env({})
    assert settings.data_dir == Path("data")
    assert settings.group_status_policy == "last_wins"
    assert settings.demo_size == 500


def test_overrides():
    settings = Settings.from_env({
        "PHARMAFIELD_DATA_DIR": "/tmp/pf",
        "PHARMAFIELD_GROUP_STATUS_POLICY": "LAST_WINS",
        "PHARMAFIELD_LOG_LEVEL": "debug",
        "PHARMAFIELD_DEMO_SEED": "9",
    })
    assert settings.data_dir == Path("/tmp/pf")
    assert settings.group_status_policy == "last_wins"
    assert settings.log_level == "DEBUG"
    assert settings.demo_seed == 9


@pytest.mark.parametrize("env", [
    {"PHARMAFIELD_GROUP_STATUS_POLICY": "majority"},
    {"PHARMAFIELD_DEMO_SIZE": "lots"},
])
def test_invalid_settings(env):
    with pytest.raises(ConfigError):
        Settings.from_env(env)


def test_configure_logging_is_idempotent():
    logger = configure_logging("INFO")
    count = len(logger.handlers)
    configure_logging("DEBUG")
    assert len(logger.handlers) == count
    assert logger.level == 10
