"""GitLab client errors."""

from __future__ import annotations


class GitlabError(Exception):
    """Base class for every error raised by a source-control client."""


class GitlabRequestError(GitlabError):
    """A single request failed; other resources may still work."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class GitlabTransportError(GitlabError):
    """The client cannot function at all (host unreachable, bad credential)."""


class GitlabAuthError(GitlabTransportError):
    """The credential was rejected."""


class MissingCredentialError(GitlabAuthError):
    """No token was configured."""

    def __init__(self, env_var: str = "GITLAB_TOKEN"):
        super().__init__(
            f"{env_var} environment variable is required. Set it with:\n"
            f"  export {env_var}=your-token"
        )
