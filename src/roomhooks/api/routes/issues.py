"""Issue routes: create an issue or look up a repository's issue templates."""

from fastapi import APIRouter
from pydantic import BaseModel, Field

from roomhooks.dependencies import Issues
from roomhooks.errors.exceptions import AuthenticationError, RemoteAPIError, ValidationError
from roomhooks.models.enums import IssueOutcome
from roomhooks.services.notifications import issue_message

router = APIRouter(tags=["Issues"])


class IssueCreateRequest(BaseModel):
    repository: str | None = None
    title: str | None = None
    body: str | None = None
    labels: str | list[str] | None = None
    assignees: str | list[str] | None = None
    access_token: str | None = Field(default=None, repr=False)


class IssueStartRequest(BaseModel):
    repository: str | None = None
    access_token: str | None = Field(default=None, repr=False)


@router.post("/issues", status_code=201)
async def create_issue(body: IssueCreateRequest, issues: Issues) -> dict:
    result = await issues.create_issue(
        body.repository,
        body.title,
        body.body,
        body.labels,
        body.assignees,
        body.access_token,
    )
    if result.outcome == IssueOutcome.INVALID_ISSUE:
        raise ValidationError(result.message)
    if result.outcome == IssueOutcome.AUTHENTICATION_REQUIRED:
        raise AuthenticationError(result.message)
    if result.outcome == IssueOutcome.ISSUE_ERROR:
        raise RemoteAPIError(result.message)

    return {
        "outcome": result.outcome.value,
        "message": result.message,
        "issue": result.issue.model_dump(mode="json"),
    }


@router.post("/issues/templates")
async def issue_templates(body: IssueStartRequest, issues: Issues) -> dict:
    """Return issue templates, or an empty list meaning "open a blank issue form"."""
    if not body.access_token:
        raise AuthenticationError(issue_message(IssueOutcome.AUTHENTICATION_REQUIRED))
    if not (body.repository or "").strip():
        raise ValidationError("repository is required")

    start = await issues.start_issue(body.repository, body.access_token)
    return {
        "repository": start.repository,
        "template_not_found": start.template_not_found,
        "templates": [t.model_dump(mode="json") for t in start.templates],
    }
