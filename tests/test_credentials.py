import pytest

from nihongo_lens.credentials import bearer_token, resolve_credentials
from nihongo_lens.errors import MissingCredential
from nihongo_lens.settings import DEFAULT_API_URL, Settings


def test_request_key_wins_over_environment_key():
    settings = Settings(_env_file=None, api_key="env-key")
    creds = resolve_credentials(settings, "Bearer user-key")
    assert creds.api_key == "user-key"


def test_environment_key_used_without_header():
    settings = Settings(_env_file=None, api_key="env-key")
    assert resolve_credentials(settings, None).api_key == "env-key"
    assert resolve_credentials(settings, "Bearer ").api_key == "env-key"


def test_url_precedence():
    default = Settings(_env_file=None, api_key="k")
    configured = Settings(_env_file=None, api_key="k", api_url="https://proxy.example.com")

    assert resolve_credentials(default).api_url == DEFAULT_API_URL
    assert resolve_credentials(configured).api_url == "https://proxy.example.com"
    assert (
        resolve_credentials(configured, api_url="https://request.example.com").api_url
        == "https://request.example.com"
    )


def test_missing_key_raises():
    with pytest.raises(MissingCredential) as excinfo:
        resolve_credentials(Settings(_env_file=None), None)
    assert excinfo.value.status_code == 500


def test_environment_variables_are_read(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("API_KEY", "from-env")
    monkeypatch.setenv("API_URL", "https://env.example.com")
    creds = resolve_credentials(Settings(_env_file=None))
    assert creds.api_key == "from-env"
    assert creds.api_url == "https://env.example.com"


def test_bearer_token_strips_optional_prefix():
    assert bearer_token("Bearer abc") == "abc"
    assert bearer_token("bearer abc") == "abc"
    assert bearer_token("raw-key") == "raw-key"
    assert bearer_token("Bearer") == ""
    assert bearer_token(None) == ""


def test_header_without_prefix_is_used_as_key():
    settings = Settings(_env_file=None, api_key="env-key")
    assert resolve_credentials(settings, "user-key").api_key == "user-key"
