"""
Authenticated session handling and verification-token scraping.

One ``SkeddaSession`` owns one cookie-bearing ``httpx.AsyncClient`` and the
credential pair; every other component receives the session explicitly.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

import httpx
from bs4 import BeautifulSoup

from skedda_client.config import SkeddaConstants
from skedda_client.errors import (
    AuthenticationFailed,
    CredentialsMissing,
    InvalidTenant,
    TokenNotFound,
    UnexpectedRedirect,
    UnknownStatus,
)

logger = logging.getLogger(__name__)


# --- Utility Functions ---


def extract_error_detail(response: httpx.Response) -> str | None:
    """
    Pull ``errors[0].detail`` out of an error response body.

    Args:
        response: Response with a non-2xx status

    Returns:
        The detail string, or None if the body is not shaped that way
    """
    try:
        body = response.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None

    if not isinstance(body, dict):
        return None

    errors = body.get("errors")
    if not isinstance(errors, list) or not errors or not isinstance(errors[0], dict):
        return None

    detail = errors[0].get("detail")
    return detail if isinstance(detail, str) else None


def extract_verification_token(html_content: str) -> str:
    """
    Extract the anti-forgery token from a Skedda page.

    Returns the value attribute of the unique ``<input>`` element whose name
    is ``__RequestVerificationToken``. Character references in the attribute
    are decoded, so the token is what a browser would submit with the form.

    Args:
        html_content: HTML of the tenant's booking page

    Returns:
        The decoded token value

    Raises:
        TokenNotFound: If there is no such element, more than one, or it has
            no value attribute
    """
    soup = BeautifulSoup(html_content, "html.parser")
    token_inputs = soup.find_all("input", {"name": SkeddaConstants.TOKEN_FIELD})

    if len(token_inputs) != 1:
        raise TokenNotFound(
            f"verification token not found ({len(token_inputs)} matching inputs)"
        )

    value = token_inputs[0].get("value")
    if value is None:
        raise TokenNotFound()

    return value


def create_http_client(transport: httpx.AsyncBaseTransport | None = None) -> httpx.AsyncClient:
    """
    Create HTTP client with standard headers.

    Args:
        transport: Optional transport, used by tests to stand in for Skedda

    Returns:
        Configured HTTP client
    """
    client = httpx.AsyncClient(
        transport=transport, timeout=SkeddaConstants.DEFAULT_TIMEOUT
    )
    client.headers.update(
        {
            "User-Agent": SkeddaConstants.USER_AGENT,
            "Accept-Language": SkeddaConstants.ACCEPT_LANGUAGE,
            "Accept": SkeddaConstants.ACCEPT,
        }
    )
    return client


# --- Session ---


class SkeddaSession:
    """Cookie store plus credentials, authenticated at most once."""

    def __init__(
        self,
        username: str = "",
        password: str = "",
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.username = username
        self.password = password
        self.is_authenticated = False
        self.client = create_http_client(transport)
        self._auth_lock = asyncio.Lock()

    async def __aenter__(self) -> SkeddaSession:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if not self.client.is_closed:
            await self.client.aclose()

    def has_credentials(self) -> bool:
        return bool(self.username) and bool(self.password)

    async def authenticate(self) -> None:
        """
        Log in and keep the session cookies for later calls.

        Concurrent callers share a single login request.

        Raises:
            CredentialsMissing: If username or password is empty
            AuthenticationFailed: If Skedda rejects the login
        """
        if self.is_authenticated:
            return

        async with self._auth_lock:
            if self.is_authenticated:
                return

            if not self.has_credentials():
                raise CredentialsMissing()

            login_payload = {
                "login": {
                    "username": self.username,
                    "password": self.password,
                    "rememberMe": False,
                    "arbitraryerrors": None,
                }
            }

            logger.info("Submitting username and password...")
            response = await self.client.post(
                SkeddaConstants.LOGIN_URL, json=login_payload
            )

            if not response.is_success:
                detail = extract_error_detail(response)
                if detail is None:
                    detail = f"unknown status: {response.status_code}"
                logger.warning(f"Login rejected with status {response.status_code}")
                raise AuthenticationFailed(detail)

            self.is_authenticated = True
            logger.info("Login successful!")

    async def get(self, url: str | httpx.URL, **kwargs: Any) -> httpx.Response:
        return await self.client.get(url, **kwargs)

    async def post(self, url: str | httpx.URL, **kwargs: Any) -> httpx.Response:
        return await self.client.post(url, **kwargs)

    async def request_with_token(
        self, method: str, tenant: str, path: str, **kwargs: Any
    ) -> httpx.Response:
        """Resolve a fresh token for ``tenant`` and send it along with the request."""
        token = await resolve_token(self, tenant)
        headers = dict(kwargs.pop("headers", None) or {})
        headers[SkeddaConstants.TOKEN_HEADER] = token
        url = SkeddaConstants.tenant_url(tenant, path)
        logger.debug(f"{method} {url}")
        return await self.client.request(method, url, headers=headers, **kwargs)


# --- Token Resolution ---


def _leaves_tenant(url: httpx.URL) -> bool:
    return url.host.split(".")[0] == "www"


async def resolve_token(session: SkeddaSession, tenant: str) -> str:
    """
    Fetch the tenant's booking page and scrape its verification token.

    Redirects are followed until one would land on the ``www`` host; such a
    redirect means the tenant does not exist for this account. Tokens are not
    cached, callers resolve one per operation.

    Args:
        session: Session whose cookies are used
        tenant: Skedda subdomain

    Returns:
        The verification token

    Raises:
        InvalidTenant: If the page redirects to the www host
        UnexpectedRedirect: If there are too many redirects
        UnknownStatus: For any other non-200 response
        TokenNotFound: If the page lacks a unique token input
    """
    url = httpx.URL(SkeddaConstants.tenant_url(tenant, "/booking"))

    for _ in range(SkeddaConstants.MAX_REDIRECTS + 1):
        response = await session.get(url, follow_redirects=False)
        if not response.is_redirect:
            break

        next_url = url.join(response.headers["Location"])
        if _leaves_tenant(next_url):
            break
        url = next_url
    else:
        raise UnexpectedRedirect(str(url))

    if response.status_code == 302:
        raise InvalidTenant(tenant)

    if response.status_code != 200:
        raise UnknownStatus(response.status_code)

    token = extract_verification_token(response.text)
    logger.debug(f"Fetched verification token for {tenant}: {token[:10]}...")
    return token
