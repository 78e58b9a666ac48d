"""GitLab bindings — HTTP client and its error taxonomy."""

from husgit.adapters.gitlab.client import GitlabClient
from husgit.adapters.gitlab.errors import (
    GitlabAuthError,
    GitlabError,
    GitlabRequestError,
    GitlabTransportError,
    MissingCredentialError,
)

__all__ = [
    "GitlabAuthError",
    "GitlabClient",
    "GitlabError",
    "GitlabRequestError",
    "GitlabTransportError",
    "MissingCredentialError",
]
