"""Tests for environment-driven server configuration."""

import pytest

from stripe_testing_tools.config import DEFAULT_PORT, load_config
from stripe_testing_tools.credentials import LiveKeyPolicy
from stripe_testing_tools.log_config import LogLevel


def test_defaults():
    config = load_config({})
    assert config.log_level is LogLevel.INFO
    assert config.log_file is None
    assert config.include_timestamp is True
    assert config.live_key_policy is LiveKeyPolicy.PREFIX_SEGMENT
    assert config.port == DEFAULT_PORT


def test_reads_environment():
    config = load_config(
        {
            "STRIPE_TESTING_LOG_LEVEL": "debug",
            "STRIPE_TESTING_LOG_FILE": "/tmp/stripe-testing.log",
            "STRIPE_TESTING_LOG_TIMESTAMPS": "false",
            "STRIPE_LIVE_KEY_POLICY": "substring",
            "STRIPE_TESTING_HOST": "127.0.0.1",
            "STRIPE_TESTING_PORT": "5001",
        }
    )
    assert config.log_level is LogLevel.DEBUG
    assert config.log_file == "/tmp/stripe-testing.log"
    assert config.include_timestamp is False
    assert config.live_key_policy is LiveKeyPolicy.SUBSTRING
    assert config.host == "127.0.0.1"
    assert config.port == 5001


def test_empty_values_keep_defaults():
    config = load_config({"STRIPE_TESTING_LOG_LEVEL": "", "STRIPE_LIVE_KEY_POLICY": ""})
    assert config.log_level is LogLevel.INFO
    assert config.live_key_policy is LiveKeyPolicy.PREFIX_SEGMENT


@pytest.mark.parametrize(
    "env,name",
    [
        ({"STRIPE_TESTING_PORT": "not-a-port"}, "STRIPE_TESTING_PORT"),
        ({"STRIPE_LIVE_KEY_POLICY": "regex"}, "STRIPE_LIVE_KEY_POLICY"),
        ({"STRIPE_TESTING_LOG_LEVEL": "loud"}, "STRIPE_TESTING_LOG_LEVEL"),
        ({"STRIPE_TESTING_LOG_TIMESTAMPS": "maybe"}, "STRIPE_TESTING_LOG_TIMESTAMPS"),
    ],
)
def test_invalid_values_name_the_variable(env, name):
    with pytest.raises(ValueError, match=name):
        load_config(env)
