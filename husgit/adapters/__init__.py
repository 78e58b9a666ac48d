"""Adapters — source-control host bindings.

Public re-exports for convenient access.
"""

from husgit.adapters.base import SourceControlClient
from husgit.adapters.mock import MockGitlabClient

__all__ = [
    "MockGitlabClient",
    "SourceControlClient",
]
