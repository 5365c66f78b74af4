"""Discovery of the account's tenants (Skedda subdomains)."""

from __future__ import annotations

import logging
from typing import Annotated, Any
from urllib.parse import parse_qs, urlsplit

from pydantic import BaseModel, Field

from skedda_client.config import SkeddaConstants
from skedda_client.errors import RequestRejected, UnexpectedRedirect, UnknownStatus
from skedda_client.models import null_as
from skedda_client.session import SkeddaSession

logger = logging.getLogger(__name__)


class _Web(BaseModel):
    other_subdomains: Annotated[dict[str, Any], null_as(dict)] = Field(
        default_factory=dict, alias="otherSubdomains"
    )


class _WebsResponse(BaseModel):
    web: Annotated[_Web, null_as(_Web)] = Field(default_factory=_Web)


def tenant_from_location(location: str) -> str:
    """
    Turn the login redirect target into a tenant identifier.

    Args:
        location: Value of the ``Location`` header

    Returns:
        The subdomain label with ``.skedda.com`` stripped

    Raises:
        RequestRejected: If Skedda redirected to itself with an ``err`` parameter
        UnexpectedRedirect: If the target is not a tenant host
    """
    parts = urlsplit(location)
    host = parts.hostname or ""
    suffix = "." + SkeddaConstants.APEX

    if host.startswith("www.") or not host.endswith(suffix):
        if host.endswith(suffix):
            errors = parse_qs(parts.query).get("err")
            if errors:
                raise RequestRejected(errors[0])

        raise UnexpectedRedirect(location)

    return host[: -len(suffix)]


async def primary_tenant(session: SkeddaSession) -> str:
    """
    Find the subdomain Skedda sends this account to after login.

    Raises:
        UnknownStatus: If the login form does not answer with a redirect
        RequestRejected: If the redirect carries an error
        UnexpectedRedirect: If the redirect does not point at a tenant
    """
    await session.authenticate()

    logger.info("Probing primary domain...")
    response = await session.post(
        SkeddaConstants.ACCOUNT_LOGIN_URL,
        data={"username": session.username},
        follow_redirects=False,
    )

    if response.status_code != 302:
        raise UnknownStatus(response.status_code)

    tenant = tenant_from_location(response.headers.get("Location", ""))
    logger.info(f"Primary domain: {tenant}")
    return tenant


async def list_tenants(session: SkeddaSession, primary: str) -> set[str]:
    """
    List the sibling subdomains visible from ``primary``.

    Args:
        session: Authenticated (or authenticatable) session
        primary: The account's primary tenant

    Returns:
        Set of tenant identifiers
    """
    await session.authenticate()

    response = await session.request_with_token("POST", primary, "/webs")
    if response.status_code != 200:
        raise UnknownStatus(response.status_code)

    body = _WebsResponse.model_validate_json(response.content)
    tenants = set(body.web.other_subdomains)
    logger.info(f"Found {len(tenants)} domains under {primary}")
    return tenants
