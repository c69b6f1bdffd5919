"""Enumerations shared by services and API models."""

from enum import Enum


class SubscribeOutcome(str, Enum):
    SUBSCRIBED = "subscribed"
    INVALID_INPUT = "invalid_input"
    AUTHENTICATION_REQUIRED = "authentication_required"
    SUBSCRIPTION_ERROR = "subscription_error"


class IssueOutcome(str, Enum):
    CREATED = "created"
    INVALID_ISSUE = "invalid_issue"
    AUTHENTICATION_REQUIRED = "authentication_required"
    ISSUE_ERROR = "issue_error"
