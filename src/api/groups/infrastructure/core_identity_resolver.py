"""Core building block adapter resolving external ids to local accounts."""

from __future__ import annotations

from typing import Any

import httpx

from groups.infrastructure.observability import (
    DefaultIdentityResolverProbe,
    IdentityResolverProbe,
)
from groups.ports.exceptions import IdentityResolutionError
from groups.ports.gateways import IdentityResolver
from groups.ports.models import ResolvedIdentity


def _external_id_of(account: dict[str, Any]) -> str:
    """Extract the directory id of an account.

    Prefers ``external_ids.uin``; falls back to the identifier of the first
    active auth type.
    """
    uin = (account.get("external_ids") or {}).get("uin")
    if uin:
        return str(uin)
    for auth_type in account.get("auth_types") or []:
        if auth_type.get("active") and auth_type.get("identifier"):
            return str(auth_type["identifier"])
    return ""


def account_to_identity(account: dict[str, Any]) -> ResolvedIdentity | None:
    """Map a Core account payload to a ResolvedIdentity.

    Returns:
        The identity, or None when the account has no id or external id
    """
    external_id = _external_id_of(account)
    user_id = account.get("id")
    if not external_id or not user_id:
        return None

    profile = account.get("profile") or {}
    name = " ".join(
        part
        for part in (profile.get("first_name", ""), profile.get("last_name", ""))
        if part
    )
    return ResolvedIdentity(
        external_id=external_id,
        user_id=str(user_id),
        name=name,
        email=profile.get("email", "") or "",
    )


class CoreIdentityResolver(IdentityResolver):
    """IdentityResolver backed by the Core accounts search API.

    Pages through ``POST {base}/bbs/accounts`` until an empty page is
    returned.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        page_size: int = 100,
        timeout_seconds: float = 30.0,
        probe: IdentityResolverProbe | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize the resolver.

        Args:
            base_url: Core base URL, without trailing slash
            api_key: Bearer token for internal calls
            page_size: Accounts requested per page
            timeout_seconds: Per-request timeout
            probe: Optional domain probe for observability
            transport: Optional httpx transport, used by tests
        """
        self._base_url = base_url.rstrip("/")
        self._headers = {"Authorization": f"Bearer {api_key}"} if api_key else {}
        self._page_size = page_size
        self._timeout = timeout_seconds
        self._probe = probe or DefaultIdentityResolverProbe()
        self._transport = transport

    async def resolve_by_external_ids(
        self, external_ids: list[str]
    ) -> list[ResolvedIdentity]:
        """Resolve external ids to local identities.

        Raises:
            IdentityResolutionError: On transport failure, non-200 status or
                malformed payload
        """
        if not external_ids:
            return []

        identities: list[ResolvedIdentity] = []
        offset = 0
        pages = 0
        try:
            async with httpx.AsyncClient(
                headers=self._headers,
                timeout=self._timeout,
                transport=self._transport,
            ) as client:
                while True:
                    accounts = await self._fetch_page(client, external_ids, offset)
                    pages += 1
                    if not accounts:
                        break
                    for account in accounts:
                        identity = account_to_identity(account)
                        if identity is not None:
                            identities.append(identity)
                    offset += self._page_size
        except httpx.HTTPError as e:
            self._probe.identity_request_failed(len(external_ids), str(e))
            raise IdentityResolutionError(f"Core account lookup failed: {e}") from e

        self._probe.identities_resolved(len(external_ids), len(identities), pages)
        return identities

    async def _fetch_page(
        self, client: httpx.AsyncClient, external_ids: list[str], offset: int
    ) -> list[dict[str, Any]]:
        response = await client.post(
            f"{self._base_url}/bbs/accounts",
            json={"external_ids.uin": external_ids},
            params={"limit": self._page_size, "offset": offset},
        )
        if response.status_code != httpx.codes.OK:
            self._probe.identity_request_failed(
                len(external_ids), f"status {response.status_code}"
            )
            raise IdentityResolutionError(
                f"Core account lookup returned {response.status_code}"
            )

        try:
            accounts = response.json()
        except ValueError as e:
            self._probe.identity_request_failed(len(external_ids), str(e))
            raise IdentityResolutionError("Core returned invalid JSON") from e

        if accounts is None:
            return []
        if not isinstance(accounts, list):
            self._probe.identity_request_failed(len(external_ids), "not a list")
            raise IdentityResolutionError("Core returned an unexpected payload")
        return accounts
