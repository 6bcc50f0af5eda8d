"""Tests for the MCP server entry point."""

import json
from unittest.mock import MagicMock, patch

import pytest

from stripe_testing_tools import server
from stripe_testing_tools.config import ServerConfig
from stripe_testing_tools.credentials import CredentialStoreAdapter, LiveKeyPolicy
from stripe_testing_tools.credentials.health_check import HealthCheckResult
from stripe_testing_tools.log_config import LogLevel


class TestCreateServer:
    def test_registers_tools_with_policy(self):
        with (
            patch("stripe_testing_tools.server.FastMCP") as MockFastMCP,
            patch("stripe_testing_tools.server.register_all_tools") as register,
        ):
            register.return_value = ["create_stripe_test_customers"]
            config = ServerConfig(live_key_policy=LiveKeyPolicy.SUBSTRING)
            credentials = CredentialStoreAdapter.for_testing({})

            mcp = server.create_server(config, credentials)

        MockFastMCP.assert_called_once_with(server.SERVER_NAME, version="0.1.0")
        register.assert_called_once_with(
            MockFastMCP.return_value,
            credentials=credentials,
            live_key_policy=LiveKeyPolicy.SUBSTRING,
        )
        assert mcp is MockFastMCP.return_value


class TestBuildParser:
    def test_defaults_come_from_config(self):
        config = ServerConfig(port=5555, live_key_policy=LiveKeyPolicy.SUBSTRING)
        args = server.build_parser(config).parse_args([])
        assert args.port == 5555
        assert args.live_key_policy is LiveKeyPolicy.SUBSTRING
        assert args.stdio is False

    def test_flags_override_config(self):
        args = server.build_parser(ServerConfig()).parse_args(
            ["--stdio", "--log-level", "debug", "--live-key-policy", "substring"]
        )
        assert args.stdio is True
        assert args.log_level is LogLevel.DEBUG
        assert args.live_key_policy is LiveKeyPolicy.SUBSTRING


class TestCheckCredentials:
    def test_prints_result_and_returns_exit_code(self, capsys):
        credentials = CredentialStoreAdapter.for_testing({"stripe": "sk_live_abc"})
        exit_code = server.check_credentials(LiveKeyPolicy.PREFIX_SEGMENT, credentials)

        output = json.loads(capsys.readouterr().out)
        assert exit_code == 1
        assert output["valid"] is False
        assert output["message"] == "You cannot use a live Stripe secret key for testing"

    def test_valid_key(self, capsys):
        credentials = CredentialStoreAdapter.for_testing({"stripe": "sk_test_abc"})
        with patch(
            "stripe_testing_tools.server.check_credential_health",
            return_value=HealthCheckResult(valid=True, message="ok"),
        ) as check:
            exit_code = server.check_credentials(LiveKeyPolicy.SUBSTRING, credentials)

        check.assert_called_once_with("stripe", "sk_test_abc", policy=LiveKeyPolicy.SUBSTRING)
        assert exit_code == 0


class TestMain:
    def test_check_credentials_exits(self, capsys):
        with patch.dict("os.environ", {}, clear=True):
            with pytest.raises(SystemExit) as exc:
                server.main(["--check-credentials"])
        assert exc.value.code == 1
        assert "No Stripe secret key found" in capsys.readouterr().out

    def test_invalid_env_config_exits(self):
        with patch.dict("os.environ", {"STRIPE_TESTING_PORT": "abc"}, clear=True):
            with pytest.raises(SystemExit) as exc:
                server.main([])
        assert exc.value.code == 1

    def test_runs_stdio_transport(self):
        fake_mcp = MagicMock()
        with (
            patch.dict("os.environ", {}, clear=True),
            patch("stripe_testing_tools.server.create_server", return_value=fake_mcp),
        ):
            server.main(["--stdio"])
        fake_mcp.run.assert_called_once_with(transport="stdio")

    def test_runs_http_transport(self):
        fake_mcp = MagicMock()
        with (
            patch.dict("os.environ", {"STRIPE_TESTING_PORT": "4999"}, clear=True),
            patch("stripe_testing_tools.server.create_server", return_value=fake_mcp),
        ):
            server.main(["--host", "127.0.0.1"])
        fake_mcp.run.assert_called_once_with(transport="http", host="127.0.0.1", port=4999)

    def test_server_error_exits(self):
        fake_mcp = MagicMock()
        fake_mcp.run.side_effect = RuntimeError("transport closed")
        with (
            patch.dict("os.environ", {}, clear=True),
            patch("stripe_testing_tools.server.create_server", return_value=fake_mcp),
        ):
            with pytest.raises(SystemExit) as exc:
                server.main(["--stdio"])
        assert exc.value.code == 1
