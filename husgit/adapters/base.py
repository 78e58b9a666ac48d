"""
Source-control client base — the contract between the engine and the host.

The resolver, reconciler and status query only talk to the host through
this interface. ``GitlabClient`` implements it over HTTP; ``MockGitlabClient``
keeps everything in memory for tests and ``--mock`` runs.

Error contract:
    - ``create_merge_request`` never raises for per-resource problems; it
      returns a tagged ``CreateMergeRequestResult``.
    - The lookup/update calls raise ``GitlabRequestError`` for per-resource
      failures.
    - Any call may raise ``GitlabTransportError`` (host unreachable, bad
      credential) — that ends the whole operation.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from husgit.core.models.merge_request import (
    CreateMergeRequestResult,
    OpenMergeRequest,
    RemoteProject,
)


class SourceControlClient(ABC):
    """Abstract base class for source-control hosts."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Client identifier (e.g. 'gitlab', 'mock')."""

    @abstractmethod
    def current_user(self) -> str:
        """Name of the user owning the credential."""

    @abstractmethod
    def list_user_projects(self) -> list[RemoteProject]:
        """Every project the user is a member of."""

    @abstractmethod
    def get_project(self, id_or_path: str) -> RemoteProject:
        """Look up one project by numeric id or full path."""

    @abstractmethod
    def search_branches(self, full_path: str, pattern: str = "") -> list[str]:
        """Branch names starting with ``pattern``."""

    @abstractmethod
    def create_merge_request(
        self,
        project_id: str,
        title: str,
        source_branch: str,
        target_branch: str,
        description: str | None = None,
    ) -> CreateMergeRequestResult:
        """Open a merge request.

        Returns ``MergeRequestAlreadyExists`` when an open request for
        the same branch pair is already there.
        """

    @abstractmethod
    def list_open_merge_requests(
        self,
        project_full_path: str,
        source_branch: str,
        target_branch: str,
    ) -> list[OpenMergeRequest]:
        """All open merge requests between exactly these branches."""

    def find_open_merge_request(
        self,
        project_full_path: str,
        source_branch: str,
        target_branch: str,
    ) -> OpenMergeRequest | None:
        """The open merge request between these branches, if any."""
        found = self.list_open_merge_requests(project_full_path, source_branch, target_branch)
        return found[0] if found else None

    @abstractmethod
    def update_merge_request_title(
        self,
        project_full_path: str,
        mr_iid: str,
        title: str,
    ) -> str:
        """Change the title of an existing merge request; returns its id."""

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"
