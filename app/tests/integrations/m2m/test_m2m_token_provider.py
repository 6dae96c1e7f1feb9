"""Unit tests for the machine-to-machine token provider."""

import calendar
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock, patch

import jwt
import pytest
import requests
from freezegun import freeze_time
from integrations.m2m import AuthError, M2MTokenProvider, get_token_expiry

pytestmark = pytest.mark.unit

NOW = datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


def make_jwt(expires_in=3600):
    exp = calendar.timegm((NOW + timedelta(seconds=expires_in)).utctimetuple())
    claims = {"sub": "client@clients", "exp": exp}
    return jwt.encode(claims, "secret", algorithm="HS256")


@pytest.fixture
def session(http_response):
    session = MagicMock()
    session.post.return_value = http_response(
        body={"access_token": make_jwt(), "token_type": "Bearer"}
    )
    return session


@pytest.fixture
def provider(session):
    return M2MTokenProvider(
        auth_url="https://auth.example.com/oauth/token",
        audience="https://www.example.com",
        client_id="client",
        client_secret="secret",
        session=session,
    )


class TestGetToken:
    @freeze_time(NOW)
    def test_requests_client_credentials(self, provider, session):
        token = provider.get_token()

        assert token == session.post.return_value.json()["access_token"]
        session.post.assert_called_once_with(
            "https://auth.example.com/oauth/token",
            json={
                "grant_type": "client_credentials",
                "client_id": "client",
                "client_secret": "secret",
                "audience": "https://www.example.com",
            },
            timeout=10,
        )

    def test_token_is_cached_until_exp_claim(self, provider, session):
        with freeze_time(NOW) as frozen:
            first = provider.get_token()
            frozen.tick(timedelta(seconds=3000))
            second = provider.get_token()
            frozen.tick(timedelta(seconds=600))
            provider.get_token()

        assert first == second
        assert session.post.call_count == 2

    def test_expires_in_takes_precedence_over_claim(
        self, provider, session, http_response
    ):
        session.post.return_value = http_response(
            body={"access_token": make_jwt(3600), "expires_in": 120}
        )

        with freeze_time(NOW) as frozen:
            provider.get_token()
            frozen.tick(timedelta(seconds=59))
            provider.get_token()
            frozen.tick(timedelta(seconds=2))
            provider.get_token()

        assert session.post.call_count == 2

    def test_cache_seconds_override(self, session):
        provider = M2MTokenProvider(
            auth_url="https://auth.example.com/oauth/token",
            audience="aud",
            client_id="client",
            client_secret="secret",
            cache_seconds=30,
            session=session,
        )

        with freeze_time(NOW) as frozen:
            provider.get_token()
            frozen.tick(timedelta(seconds=29))
            provider.get_token()
            frozen.tick(timedelta(seconds=2))
            provider.get_token()

        assert session.post.call_count == 2

    @freeze_time(NOW)
    def test_opaque_token_is_not_cached(self, provider, session, http_response):
        session.post.return_value = http_response(body={"access_token": "opaque"})

        provider.get_token()
        provider.get_token()

        assert session.post.call_count == 2

    @freeze_time(NOW)
    def test_invalidate_forces_refresh(self, provider, session):
        provider.get_token()
        provider.invalidate()
        provider.get_token()

        assert session.post.call_count == 2

    @freeze_time(NOW)
    def test_proxy_receives_auth_url(self, session):
        provider = M2MTokenProvider(
            auth_url="https://auth.example.com/oauth/token",
            audience="aud",
            client_id="client",
            client_secret="secret",
            proxy_url="https://proxy.example.com/token",
            session=session,
        )

        provider.get_token()

        args, kwargs = session.post.call_args
        assert args == ("https://proxy.example.com/token",)
        assert kwargs["json"]["auth0_url"] == "https://auth.example.com/oauth/token"


class TestGetTokenErrors:
    def test_missing_credentials(self, session):
        provider = M2MTokenProvider(
            auth_url="https://auth.example.com/oauth/token",
            audience="aud",
            client_id="",
            client_secret="",
            session=session,
        )

        with pytest.raises(AuthError, match="Missing client credentials"):
            provider.get_token()
        session.post.assert_not_called()

    def test_missing_endpoint(self, session):
        provider = M2MTokenProvider(
            auth_url="",
            audience="aud",
            client_id="client",
            client_secret="secret",
            session=session,
        )

        with pytest.raises(AuthError, match="Missing token endpoint"):
            provider.get_token()

    def test_request_exception(self, provider, session):
        session.post.side_effect = requests.ConnectionError("refused")

        with pytest.raises(AuthError, match="refused"):
            provider.get_token()

    def test_error_status(self, provider, session, http_response):
        session.post.return_value = http_response(
            status_code=401, body={"error": "access_denied"}
        )

        with pytest.raises(AuthError, match="401"):
            provider.get_token()

    def test_invalid_json(self, provider, session, http_response):
        session.post.return_value = http_response(text="<html>")

        with pytest.raises(AuthError, match="invalid JSON"):
            provider.get_token()

    def test_missing_access_token(self, provider, session, http_response):
        session.post.return_value = http_response(body={"token_type": "Bearer"})

        with pytest.raises(AuthError, match="no access_token"):
            provider.get_token()


def test_get_token_expiry_reads_exp_claim():
    token = make_jwt(60)

    assert get_token_expiry(token) == calendar.timegm(NOW.utctimetuple()) + 60


def test_get_token_expiry_of_opaque_token():
    assert get_token_expiry("not-a-jwt") is None


def test_get_token_expiry_without_exp():
    token = jwt.encode({"sub": "x"}, "secret", algorithm="HS256")

    assert get_token_expiry(token) is None


@patch("integrations.m2m.client.settings")
def test_from_settings(mock_settings):
    mock_settings.m2m.AUTH0_URL = "https://auth.example.com/oauth/token"
    mock_settings.m2m.AUTH0_AUDIENCE = "aud"
    mock_settings.m2m.AUTH0_CLIENT_ID = "client"
    mock_settings.m2m.AUTH0_CLIENT_SECRET = "secret"
    mock_settings.m2m.AUTH0_PROXY_SERVER_URL = None
    mock_settings.m2m.TOKEN_CACHE_TIME = 90
    mock_settings.m2m.TOKEN_REQUEST_TIMEOUT_SECONDS = 4

    provider = M2MTokenProvider.from_settings()

    assert provider.auth_url == "https://auth.example.com/oauth/token"
    assert provider.cache_seconds == 90
    assert provider.timeout == 4
    assert provider.proxy_url is None
