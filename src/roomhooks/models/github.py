"""Pydantic views of the GitHub REST resources the service consumes."""

from pydantic import BaseModel, ConfigDict, Field


class WebhookDescriptor(BaseModel):
    """A repository webhook as reported by GitHub."""

    model_config = ConfigDict(extra="ignore")

    id: str
    events: list[str] | None = None
    active: bool = True
    url: str | None = None

    @classmethod
    def from_response(cls, data: dict) -> "WebhookDescriptor":
        return cls(
            id=str(data["id"]),
            events=data.get("events"),
            active=data.get("active", True),
            url=(data.get("config") or {}).get("url"),
        )

    def serves(self, event: str) -> bool:
        """True if the hook reports delivering ``event`` (or reports nothing)."""
        if self.events is None:
            return True
        return "*" in self.events or event in self.events


class IssueDescriptor(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    number: int
    title: str
    html_url: str


class IssueTemplate(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str
    path: str
    download_url: str | None = None


class NewIssue(BaseModel):
    title: str
    body: str = ""
    labels: list[str] = Field(default_factory=list)
    assignees: list[str] = Field(default_factory=list)
