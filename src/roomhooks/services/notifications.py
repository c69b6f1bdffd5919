"""User-facing message templates for subscription and issue outcomes."""

from roomhooks.models.enums import IssueOutcome, SubscribeOutcome

_SUBSCRIBE_TEMPLATES: dict[SubscribeOutcome, str] = {
    SubscribeOutcome.SUBSCRIBED: "Subscribed to {repository} ✔️",
    SubscribeOutcome.INVALID_INPUT: "Invalid Input !",
    SubscribeOutcome.AUTHENTICATION_REQUIRED: "Login To Github !",
    SubscribeOutcome.SUBSCRIPTION_ERROR: "Could not subscribe to {repository}, please try again.",
}

_ISSUE_TEMPLATES: dict[IssueOutcome, str] = {
    IssueOutcome.CREATED: "Created New Issue | [#{number} ]({url})  *[{title}]({url})*",
    IssueOutcome.INVALID_ISSUE: "Invalid Issue !",
    IssueOutcome.AUTHENTICATION_REQUIRED: "Login To Github ! -> /github login",
    IssueOutcome.ISSUE_ERROR: "Could not create the issue in {repository}.",
}


def subscribe_message(outcome: SubscribeOutcome, repository: str | None = None) -> str:
    return _SUBSCRIBE_TEMPLATES[outcome].format(repository=repository or "repository")


def issue_message(outcome: IssueOutcome, **fields: object) -> str:
    fields.setdefault("repository", "repository")
    return _ISSUE_TEMPLATES[outcome].format(**fields)
