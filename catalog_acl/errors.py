from __future__ import annotations
from typing import Optional


class AccessControlError(Exception):
    """Base class for every error raised by the access control engine."""


class AccessControlConfigError(AccessControlError):
    """Rule document, pattern or registration options are unusable.

    Raised at load or registration time, never as the outcome of a check.
    """


class AccessDeniedError(AccessControlError):
    """A check evaluated to deny.

    The message names the user, the action and the resource, but never the
    rule (or the absence of one) that produced the decision.
    """

    def __init__(self, user: str, action: str, resource: Optional[object] = None):
        self.user = user
        self.action = action
        self.resource = resource
        message = f"Access Denied: User {user} cannot {action}"
        if resource is not None:
            message += f" {resource}"
        super().__init__(message)
