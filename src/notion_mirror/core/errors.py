# src/notion_mirror/core/errors.py

"""
Error taxonomy for a sync run.

- Transient: retry the same listing page after a fixed delay.
- Partial: a single record failed to hydrate; the hydrator logs and skips it.
- Fatal: everything else. The run aborts and the last checkpoint stays untouched.
"""

from __future__ import annotations


class MirrorError(RuntimeError):
    """Base class for all notion_mirror errors."""


class ConfigError(MirrorError):
    """Required configuration (API key, database id) is missing or invalid."""


class RemoteError(MirrorError):
    def __init__(self, message: str, *, status: int | None = None, code: str | None = None) -> None:
        super().__init__(message)
        self.status = status
        self.code = code


class TransientRemoteError(RemoteError):
    """Upstream timeout / unavailable / rate limited. Safe to retry."""

    def __init__(
        self,
        message: str,
        *,
        status: int | None = None,
        code: str | None = None,
        retry_after: float | None = None,
    ) -> None:
        super().__init__(message, status=status, code=code)
        self.retry_after = retry_after


class AuthenticationError(RemoteError):
    pass


class NotFoundError(RemoteError):
    pass


class MalformedResponseError(RemoteError):
    pass


class MissingDataSourceError(MirrorError):
    """The database schema declares no queryable data source."""


class RetryBudgetExceededError(MirrorError):
    """A listing page kept failing with transient errors."""


class InvalidTransitionError(MirrorError):
    pass
