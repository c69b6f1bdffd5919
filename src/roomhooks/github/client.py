"""GitHub REST client for hooks, issues and issue templates."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

import httpx

from roomhooks.config import settings
from roomhooks.errors.exceptions import RemoteAPIError
from roomhooks.github.base import WebhookClient
from roomhooks.models.github import (
    IssueDescriptor,
    IssueTemplate,
    NewIssue,
    WebhookDescriptor,
)

logger = logging.getLogger(__name__)

_TEMPLATE_DIR = ".github/ISSUE_TEMPLATE"


class GitHubClient(WebhookClient):
    """Talks to the GitHub REST API with a per-user OAuth token.

    ``transport`` is handed to every ``httpx.AsyncClient`` the client opens,
    which lets tests substitute an ``httpx.MockTransport``.
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        webhook_secret: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url or settings.github_api_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.github_timeout_seconds
        self.webhook_secret = webhook_secret if webhook_secret is not None else settings.webhook_secret
        self._transport = transport

    # ------------------------------------------------------------------
    # Webhooks
    # ------------------------------------------------------------------

    async def create_webhook(
        self,
        repository: str,
        callback_url: str,
        token: str,
        events: Iterable[str],
    ) -> WebhookDescriptor:
        """POST ``/repos/{repository}/hooks``."""
        config: dict[str, str] = {
            "url": callback_url,
            "content_type": "json",
            "insecure_ssl": "0",
        }
        if self.webhook_secret:
            config["secret"] = self.webhook_secret

        payload = {
            "name": "web",
            "active": True,
            "events": sorted(set(events)),
            "config": config,
        }
        data = await self._request("POST", f"/repos/{repository}/hooks", token, json=payload)
        hook = WebhookDescriptor.from_response(data)
        logger.info(
            "Created webhook %s on %s for events %s", hook.id, repository, payload["events"]
        )
        return hook

    async def patch_webhook(
        self,
        repository: str,
        token: str,
        webhook_id: str,
        events: Iterable[str],
    ) -> WebhookDescriptor:
        """PATCH ``/repos/{repository}/hooks/{webhook_id}``."""
        payload = {"active": True, "events": sorted(set(events))}
        data = await self._request(
            "PATCH", f"/repos/{repository}/hooks/{webhook_id}", token, json=payload
        )
        hook = WebhookDescriptor.from_response(data)
        logger.info(
            "Patched webhook %s on %s to events %s", hook.id, repository, payload["events"]
        )
        return hook

    # ------------------------------------------------------------------
    # Issues
    # ------------------------------------------------------------------

    async def create_issue(
        self, repository: str, token: str, issue: NewIssue
    ) -> IssueDescriptor:
        """POST ``/repos/{repository}/issues``."""
        payload: dict[str, Any] = {"title": issue.title, "body": issue.body}
        if issue.labels:
            payload["labels"] = issue.labels
        if issue.assignees:
            payload["assignees"] = issue.assignees

        data = await self._request("POST", f"/repos/{repository}/issues", token, json=payload)
        created = IssueDescriptor.model_validate(data)
        logger.info("GitHub issue #%s created in %s", created.number, repository)
        return created

    async def list_issue_templates(self, repository: str, token: str) -> list[IssueTemplate]:
        """List markdown/yaml files under ``.github/ISSUE_TEMPLATE``.

        A repository without the directory has no templates; that is not an error.
        """
        try:
            data = await self._request(
                "GET", f"/repos/{repository}/contents/{_TEMPLATE_DIR}", token
            )
        except RemoteAPIError as exc:
            if exc.remote_status == 404:
                return []
            raise

        if not isinstance(data, list):
            return []
        return [
            IssueTemplate.model_validate(entry)
            for entry in data
            if entry.get("type") == "file"
            and entry.get("name", "").lower().endswith((".md", ".yml", ".yaml"))
        ]

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _headers(self, token: str) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }

    async def _request(
        self,
        method: str,
        path: str,
        token: str,
        *,
        json: dict | None = None,
    ) -> Any:
        """Send one request and return the decoded body, raising RemoteAPIError otherwise."""
        url = f"{self.base_url}{path}"
        try:
            async with httpx.AsyncClient(transport=self._transport, timeout=self.timeout) as client:
                response = await client.request(method, url, json=json, headers=self._headers(token))
        except httpx.TimeoutException as exc:
            logger.error("GitHub %s %s timed out: %s", method, path, exc)
            raise RemoteAPIError(f"GitHub request timed out: {method} {path}") from exc
        except httpx.HTTPError as exc:
            logger.error("GitHub %s %s failed: %s", method, path, exc)
            raise RemoteAPIError(f"GitHub request failed: {exc}") from exc

        if response.is_success:
            return response.json()

        logger.warning(
            "GitHub %s %s returned %s: %s",
            method,
            path,
            response.status_code,
            response.text[:500],
        )
        raise RemoteAPIError(
            f"GitHub returned {response.status_code} for {method} {path}",
            remote_status=response.status_code,
            details=_error_message(response),
        )


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text[:500]
    if isinstance(body, dict):
        return str(body.get("message", ""))[:500]
    return ""
