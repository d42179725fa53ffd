"""
This test module verifies run request validation. It checks:
- Required credentials for dropout mode.
- The custom API key rule.
- Normalisation of empty overrides and mode-specific fields.
"""
import pytest

from deckrunner.core.exceptions import DeckrunnerError, ValidationError
from deckrunner.core.validation import Credentials, RunMode, RunRequest, validate_request


class TestDropoutCredentials:
    def test_missing_credentials(self):
        with pytest.raises(ValidationError, match="Netname and Password"):
            validate_request(RunRequest(mode=RunMode.DROPOUT))

    @pytest.mark.parametrize("netname,password", [("", "pw"), ("   ", "pw"), ("user", ""), ("user", "  ")])
    def test_blank_fields(self, netname, password):
        with pytest.raises(ValidationError):
            validate_request(RunRequest(mode=RunMode.DROPOUT, credentials=Credentials(netname, password)))

    def test_values_are_trimmed(self):
        request = validate_request(
            RunRequest(mode=RunMode.DROPOUT, credentials=Credentials("  user123 ", " Pass!word1 "))
        )
        assert request.credentials == Credentials("user123", "Pass!word1")


class TestApiKey:
    def test_custom_key_must_not_be_empty(self):
        with pytest.raises(ValidationError, match="custom API key"):
            validate_request(RunRequest(mode=RunMode.CREATE_ACCOUNT, api_key="  ", custom_api_key=True))

    def test_builtin_key_with_empty_value_is_fine(self):
        request = validate_request(RunRequest(mode=RunMode.CREATE_ACCOUNT, api_key=""))
        assert request.api_key is None


def test_all_problems_are_reported():
    with pytest.raises(ValidationError) as exc_info:
        validate_request(RunRequest(mode=RunMode.DROPOUT, custom_api_key=True))
    assert len(exc_info.value.messages) == 2
    assert isinstance(exc_info.value, DeckrunnerError)
    assert exc_info.value.code == "VALIDATION_ERROR"


def test_create_account_drops_credentials_and_empty_overrides():
    request = validate_request(RunRequest(
        mode=RunMode.CREATE_ACCOUNT,
        credentials=Credentials("someone", "secret"),
        api_key="",
        chrome_path="   ",
    ))
    assert request.credentials is None
    assert request.api_key is None
    assert request.chrome_path is None


def test_original_request_is_not_modified():
    original = RunRequest(mode=RunMode.CREATE_ACCOUNT, chrome_path=" /opt/chrome ")
    normalized = validate_request(original)
    assert normalized.chrome_path == "/opt/chrome"
    assert original.chrome_path == " /opt/chrome "


@pytest.mark.parametrize("value,expected", [
    ("create-account", RunMode.CREATE_ACCOUNT),
    ("CREATE_ACCOUNT", RunMode.CREATE_ACCOUNT),
    (" dropout ", RunMode.DROPOUT),
])
def test_run_mode_from_string(value, expected):
    assert RunMode.from_string(value) is expected


def test_run_mode_from_string_rejects_unknown():
    with pytest.raises(ValueError, match="Unknown run mode"):
        RunMode.from_string("register")


def test_credentials_helpers():
    credentials = Credentials("u1", "p1")
    assert credentials.clipboard_text() == "u1 / p1"
    assert "p1" not in repr(credentials)
