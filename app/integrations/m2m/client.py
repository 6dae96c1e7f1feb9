"""Machine-to-machine (client credentials) token client."""

import calendar
import threading
import time
from typing import Optional

import jwt
import requests
from core.config import settings
from core.logging import get_module_logger

logger = get_module_logger()

# Refresh this many seconds before the token actually expires
EXPIRY_LEEWAY_SECONDS = 60


class AuthError(Exception):
    """Raised when a bearer token cannot be obtained."""


# generate the epoch seconds for the cache expiry
def epoch_seconds():
    return calendar.timegm(time.gmtime())


def get_token_expiry(token: str) -> Optional[int]:
    """Return the ``exp`` claim of a JWT without verifying its signature.

    Opaque (non-JWT) tokens and tokens without ``exp`` return None.
    """
    try:
        claims = jwt.decode(
            token, options={"verify_signature": False, "verify_exp": False}
        )
    except jwt.PyJWTError:
        return None
    exp = claims.get("exp")
    return int(exp) if isinstance(exp, (int, float)) else None


class M2MTokenProvider:
    """Fetches and caches a client-credentials bearer token.

    The token is cached until ``cache_seconds`` elapse when configured,
    otherwise until the ``expires_in`` of the token response or the ``exp``
    claim of the token (minus a small leeway).
    """

    def __init__(
        self,
        auth_url: str,
        audience: str,
        client_id: str,
        client_secret: str,
        proxy_url: Optional[str] = None,
        cache_seconds: Optional[int] = None,
        timeout: int = 10,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.auth_url = auth_url
        self.audience = audience
        self.client_id = client_id
        self.client_secret = client_secret
        self.proxy_url = proxy_url
        self.cache_seconds = cache_seconds
        self.timeout = timeout
        self._session = session or requests.Session()
        self._token: Optional[str] = None
        self._expires_at = 0
        self._lock = threading.Lock()

    @classmethod
    def from_settings(cls) -> "M2MTokenProvider":
        """Build a provider from ``settings.m2m``."""
        m2m = settings.m2m
        return cls(
            auth_url=m2m.AUTH0_URL,
            audience=m2m.AUTH0_AUDIENCE,
            client_id=m2m.AUTH0_CLIENT_ID,
            client_secret=m2m.AUTH0_CLIENT_SECRET,
            proxy_url=m2m.AUTH0_PROXY_SERVER_URL,
            cache_seconds=m2m.TOKEN_CACHE_TIME,
            timeout=m2m.TOKEN_REQUEST_TIMEOUT_SECONDS,
        )

    def get_token(self) -> str:
        """Return a valid bearer token, fetching a new one when needed.

        Raises:
            AuthError: If the token endpoint cannot be reached or refuses the
                credentials.
        """
        with self._lock:
            if self._token and epoch_seconds() < self._expires_at:
                return self._token

            token, expires_in = self._request_token()
            self._token = token
            self._expires_at = self._compute_expiry(token, expires_in)
            logger.info("m2m_token_refreshed", expires_at=self._expires_at)
            return token

    def invalidate(self) -> None:
        """Drop the cached token so the next call fetches a new one."""
        with self._lock:
            self._token = None
            self._expires_at = 0

    def _compute_expiry(self, token: str, expires_in: Optional[int]) -> int:
        now = epoch_seconds()
        if self.cache_seconds:
            return now + self.cache_seconds
        if expires_in:
            return now + max(int(expires_in) - EXPIRY_LEEWAY_SECONDS, 0)
        exp = get_token_expiry(token)
        if exp:
            return max(exp - EXPIRY_LEEWAY_SECONDS, now)
        # No expiry information; do not cache
        return now

    def _request_token(self):
        if not self.client_id or not self.client_secret:
            logger.error("m2m_token_request_failed", error="Missing client credentials")
            raise AuthError("Missing client credentials")

        url = self.proxy_url or self.auth_url
        if not url:
            logger.error("m2m_token_request_failed", error="Missing token endpoint")
            raise AuthError("Missing token endpoint")

        payload = {
            "grant_type": "client_credentials",
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "audience": self.audience,
        }
        if self.proxy_url:
            payload["auth0_url"] = self.auth_url

        try:
            response = self._session.post(url, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error("m2m_token_request_failed", url=url, error=str(e))
            raise AuthError(f"Token request failed: {str(e)}") from e

        if response.status_code != 200:
            logger.error(
                "m2m_token_request_failed",
                url=url,
                response_code=response.status_code,
            )
            raise AuthError(
                f"Token endpoint returned status {response.status_code}"
            )

        try:
            body = response.json()
        except ValueError as e:
            raise AuthError("Token endpoint returned invalid JSON") from e

        token = body.get("access_token") if isinstance(body, dict) else None
        if not token:
            logger.error("m2m_token_request_failed", url=url, error="No access_token")
            raise AuthError("Token endpoint response has no access_token")

        return token, body.get("expires_in")
