"""Issue creation and issue-template lookup for chat rooms."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from roomhooks.errors.exceptions import RemoteAPIError
from roomhooks.github.client import GitHubClient
from roomhooks.models.enums import IssueOutcome
from roomhooks.models.github import IssueDescriptor, IssueTemplate, NewIssue
from roomhooks.services.notifications import issue_message

logger = logging.getLogger(__name__)


def split_tokens(value: str | None) -> list[str]:
    """Split a space-separated list, dropping empty tokens."""
    return [token for token in (value or "").split() if token]


@dataclass
class IssueResult:
    outcome: IssueOutcome
    message: str
    issue: IssueDescriptor | None = None


@dataclass
class IssueStart:
    """What the room should see next: a template picker or a blank issue form."""

    repository: str
    templates: list[IssueTemplate] = field(default_factory=list)

    @property
    def template_not_found(self) -> bool:
        return not self.templates


class IssueService:
    def __init__(self, client: GitHubClient):
        self.client = client

    async def create_issue(
        self,
        repository: str | None,
        title: str | None,
        body: str | None,
        labels: str | list[str] | None,
        assignees: str | list[str] | None,
        access_token: str | None,
    ) -> IssueResult:
        repository = (repository or "").strip()
        title = (title or "").strip()
        if not repository or not title:
            return IssueResult(IssueOutcome.INVALID_ISSUE, issue_message(IssueOutcome.INVALID_ISSUE))

        if not access_token:
            return IssueResult(
                IssueOutcome.AUTHENTICATION_REQUIRED,
                issue_message(IssueOutcome.AUTHENTICATION_REQUIRED),
            )

        new_issue = NewIssue(
            title=title,
            body=body or "",
            labels=_as_tokens(labels),
            assignees=_as_tokens(assignees),
        )
        try:
            created = await self.client.create_issue(repository, access_token, new_issue)
        except RemoteAPIError as exc:
            logger.warning("Issue creation in %s failed: %s", repository, exc.message)
            return IssueResult(
                IssueOutcome.ISSUE_ERROR,
                issue_message(IssueOutcome.ISSUE_ERROR, repository=repository),
            )

        return IssueResult(
            IssueOutcome.CREATED,
            issue_message(
                IssueOutcome.CREATED,
                number=created.number,
                url=created.html_url,
                title=created.title,
            ),
            issue=created,
        )

    async def start_issue(self, repository: str | None, access_token: str) -> IssueStart:
        """Look up issue templates; raises RemoteAPIError on host failures."""
        repository = (repository or "").strip()
        templates = await self.client.list_issue_templates(repository, access_token)
        return IssueStart(repository=repository, templates=templates)


def _as_tokens(value: str | list[str] | None) -> list[str]:
    if isinstance(value, list):
        return [token.strip() for token in value if token and token.strip()]
    return split_tokens(value)
