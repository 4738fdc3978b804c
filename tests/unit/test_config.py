"""Unit tests for AssistantConfig and the gateway factory.

Tests configuration validation and environment loading.
"""

from unittest.mock import patch

import pytest
from pydantic import ValidationError

from desktop_athlete.assistant import create_gateway, get_assistant_config
from desktop_athlete.assistant.config import AssistantConfig
from desktop_athlete.assistant.http_gateway import HttpFunctionsGateway
from desktop_athlete.assistant.openai_gateway import OpenAIAssistantGateway
from desktop_athlete.chat import PollingBudget

_CLEAN_ENV = {
    "OPENAI_API_KEY": "",
    "OPENAI_BASE_URL": "",
    "ASSISTANT_ID": "",
    "VITE_ASSISTANT_ID": "",
    "ASSISTANT_GATEWAY": "openai",
    "MAX_MESSAGE_LENGTH": "800",
    "POLL_INTERVAL": "1.5",
    "MAX_POLLING_ATTEMPTS": "10",
    "MAX_RUN_RETRIES": "3",
    "MAX_SESSIONS": "1000",
    "REQUEST_TIMEOUT": "8",
}


class TestAssistantConfig:
    """Tests for AssistantConfig validation."""

    def test_valid_config_with_all_fields(self) -> None:
        """Config accepts valid values for all fields."""
        config = AssistantConfig(
            api_key="sk-test-key-12345",
            assistant_id="asst_123",
            gateway="openai",
            max_message_length=1000,
            poll_interval=2.0,
            max_polling_attempts=20,
            max_run_retries=5,
        )

        assert config.api_key == "sk-test-key-12345"
        assert config.assistant_id == "asst_123"
        assert config.max_message_length == 1000
        assert config.poll_interval == 2.0
        assert config.max_polling_attempts == 20
        assert config.max_run_retries == 5

    def test_config_with_default_values(self) -> None:
        """Config uses the documented budgets when only credentials are given."""
        with patch.dict("os.environ", _CLEAN_ENV):
            config = AssistantConfig(api_key="sk-test", assistant_id="asst_1")

        assert config.gateway == "openai"
        assert config.max_message_length == 800
        assert config.poll_interval == 1.5
        assert config.max_polling_attempts == 10
        assert config.max_run_retries == 3
        assert config.max_sessions == 1000
        assert config.request_timeout == 8.0
        assert config.max_retries == 2
        assert config.base_url is None

    def test_config_fails_with_missing_api_key(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            AssistantConfig(api_key="", assistant_id="asst_1", gateway="openai")

        assert "OPENAI_API_KEY" in str(exc_info.value)

    def test_config_fails_with_whitespace_api_key(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            AssistantConfig(api_key="   ", assistant_id="asst_1", gateway="openai")

        assert "OPENAI_API_KEY" in str(exc_info.value)

    def test_functions_gateway_needs_no_api_key(self) -> None:
        config = AssistantConfig(api_key="", assistant_id="asst_1", gateway="functions")

        assert config.gateway == "functions"

    def test_config_fails_with_missing_assistant_id(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            AssistantConfig(api_key="sk-test", assistant_id="  ")

        assert "ASSISTANT_ID" in str(exc_info.value)

    def test_config_strips_identifiers(self) -> None:
        config = AssistantConfig(api_key="  sk-test-key  ", assistant_id=" asst_1 ")

        assert config.api_key == "sk-test-key"
        assert config.assistant_id == "asst_1"

    def test_config_rejects_unknown_gateway(self) -> None:
        with pytest.raises(ValidationError):
            AssistantConfig(api_key="sk-test", assistant_id="asst_1", gateway="grpc")

    @pytest.mark.parametrize(
        ("field", "value"),
        [
            ("max_message_length", 0),
            ("max_message_length", 5000),
            ("poll_interval", -0.5),
            ("max_polling_attempts", 0),
            ("max_run_retries", -1),
            ("max_sessions", 0),
        ],
    )
    def test_config_rejects_out_of_range_budgets(self, field: str, value: float) -> None:
        with pytest.raises(ValidationError) as exc_info:
            AssistantConfig(api_key="sk-test", assistant_id="asst_1", **{field: value})

        assert field in str(exc_info.value)


class TestGetAssistantConfig:
    """Tests for get_assistant_config factory function."""

    def test_get_config_from_environment(self) -> None:
        env = {
            **_CLEAN_ENV,
            "OPENAI_API_KEY": "sk-env-key",
            "VITE_ASSISTANT_ID": "asst_env",
            "MAX_POLLING_ATTEMPTS": "4",
            "POLL_INTERVAL": "0.25",
        }
        with patch.dict("os.environ", env):
            config = get_assistant_config()

        assert config.api_key == "sk-env-key"
        assert config.assistant_id == "asst_env"
        assert config.max_polling_attempts == 4
        assert config.poll_interval == 0.25

    def test_get_config_fails_without_env_vars(self) -> None:
        with patch.dict("os.environ", _CLEAN_ENV), pytest.raises(ValidationError):
            get_assistant_config()

    def test_gateway_selection_is_case_insensitive(self) -> None:
        env = {**_CLEAN_ENV, "ASSISTANT_GATEWAY": "FUNCTIONS", "ASSISTANT_ID": "asst_1"}
        with patch.dict("os.environ", env):
            config = get_assistant_config()

        assert config.gateway == "functions"


class TestCreateGateway:
    """Tests for gateway selection."""

    def test_openai_gateway(self) -> None:
        config = AssistantConfig(api_key="sk-test", assistant_id="asst_1", gateway="openai")

        assert isinstance(create_gateway(config), OpenAIAssistantGateway)

    def test_functions_gateway(self) -> None:
        config = AssistantConfig(assistant_id="asst_1", gateway="functions")

        assert isinstance(create_gateway(config), HttpFunctionsGateway)

    def test_polling_budget_from_config(self) -> None:
        config = AssistantConfig(
            api_key="sk-test",
            assistant_id="asst_1",
            poll_interval=0.5,
            max_polling_attempts=6,
            max_run_retries=1,
        )

        budget = PollingBudget.from_config(config)

        assert budget == PollingBudget(poll_interval=0.5, max_polling_attempts=6, max_run_retries=1)
