"""Directory (Authman / Grouper web services) adapter.

Implements DirectoryGateway over the Grouper JSON REST API using basic
authentication.
"""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

import httpx

from groups.domain.directory import DirectoryGroup
from groups.infrastructure.observability import (
    DefaultDirectoryGatewayProbe,
    DirectoryGatewayProbe,
)
from groups.ports.exceptions import DirectoryError
from groups.ports.gateways import DirectoryGateway


class AuthmanDirectoryGateway(DirectoryGateway):
    """DirectoryGateway backed by the Authman web services.

    Member lists are filtered to subjects of ``subject_source_id``; other
    subject sources (nested groups, service principals) are skipped.
    """

    def __init__(
        self,
        base_url: str,
        username: str,
        password: str,
        subject_source_id: str = "uofinetid",
        timeout_seconds: float = 30.0,
        probe: DirectoryGatewayProbe | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize the gateway.

        Args:
            base_url: Web services base URL, without trailing slash
            username: Basic auth user
            password: Basic auth password
            subject_source_id: Subject source of member ids to keep
            timeout_seconds: Per-request timeout
            probe: Optional domain probe for observability
            transport: Optional httpx transport, used by tests
        """
        self._base_url = base_url.rstrip("/")
        self._auth = httpx.BasicAuth(username, password)
        self._subject_source_id = subject_source_id
        self._timeout = timeout_seconds
        self._probe = probe or DefaultDirectoryGatewayProbe()
        self._transport = transport

    async def list_stem_groups(self, stem: str) -> list[DirectoryGroup]:
        """List the groups defined directly under a stem.

        Raises:
            DirectoryError: On transport failure, non-200 status or
                malformed payload
        """
        body = {
            "WsRestFindGroupsRequest": {
                "wsQueryFilter": {
                    "queryFilterType": "FIND_BY_STEM_NAME",
                    "stemName": stem,
                }
            }
        }
        payload = await self._request("find_groups", stem, "POST", "/groups", body)

        try:
            results = payload["WsFindGroupsResults"].get("groupResults") or []
            groups = [
                DirectoryGroup(
                    external_key=item["name"],
                    display_extension=item.get("displayExtension", ""),
                    description=item.get("description", ""),
                )
                for item in results
            ]
        except (KeyError, TypeError, AttributeError) as e:
            self._probe.directory_request_failed("find_groups", stem, str(e))
            raise DirectoryError(f"Malformed group list for stem {stem}") from e

        self._probe.stem_groups_listed(stem, len(groups))
        return groups

    async def list_group_members(self, external_key: str) -> list[str]:
        """List the external ids of a group's members.

        Raises:
            DirectoryError: On transport failure, non-200 status or
                malformed payload
        """
        path = f"/groups/{quote(external_key, safe='')}/members"
        payload = await self._request("get_members", external_key, "GET", path)

        try:
            subjects = payload["WsGetMembersLiteResult"].get("wsSubjects") or []
            member_ids = [
                subject["id"]
                for subject in subjects
                if subject.get("sourceId") == self._subject_source_id
            ]
        except (KeyError, TypeError, AttributeError) as e:
            self._probe.directory_request_failed("get_members", external_key, str(e))
            raise DirectoryError(f"Malformed member list for {external_key}") from e

        self._probe.group_members_listed(
            external_key, len(member_ids), len(subjects) - len(member_ids)
        )
        return member_ids

    async def _request(
        self,
        operation: str,
        target: str,
        method: str,
        path: str,
        body: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Issue one request and return its decoded JSON body."""
        try:
            async with httpx.AsyncClient(
                auth=self._auth,
                timeout=self._timeout,
                transport=self._transport,
            ) as client:
                response = await client.request(
                    method, f"{self._base_url}{path}", json=body
                )
        except httpx.HTTPError as e:
            self._probe.directory_request_failed(operation, target, str(e))
            raise DirectoryError(f"Directory request failed for {target}: {e}") from e

        if response.status_code != httpx.codes.OK:
            self._probe.directory_request_failed(
                operation, target, f"status {response.status_code}"
            )
            raise DirectoryError(
                f"Directory returned {response.status_code} for {target}"
            )

        try:
            return response.json()
        except ValueError as e:
            self._probe.directory_request_failed(operation, target, str(e))
            raise DirectoryError(f"Directory returned invalid JSON for {target}") from e
