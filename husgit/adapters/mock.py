"""
Mock client — in-memory stand-in for a GitLab host.

Used by the test suite and by ``--mock`` runs to exercise the whole
release/backport/status flow without touching the network. Open merge
requests are kept per (project, source, target); creating one twice
yields ``MergeRequestAlreadyExists`` exactly like the real host.
Failures can be injected per project.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from husgit.adapters.base import SourceControlClient
from husgit.adapters.gitlab.errors import GitlabRequestError
from husgit.core.models.merge_request import (
    CreateMergeRequestResult,
    MergeRequestAlreadyExists,
    MergeRequestCreated,
    MergeRequestCreateFailed,
    OpenMergeRequest,
    RemoteProject,
)


@dataclass
class MockMergeRequest:
    project_path: str
    iid: str
    source_branch: str
    target_branch: str
    title: str
    description: str | None = None
    state: str = "opened"

    @property
    def web_url(self) -> str:
        return f"https://gitlab.mock/{self.project_path}/-/merge_requests/{self.iid}"


@dataclass
class MockCall:
    method: str
    args: tuple = field(default_factory=tuple)


class MockGitlabClient(SourceControlClient):
    """Universal mock client.

    Projects are registered with ``add_project``; ``create_merge_request``
    accepts either the external id or the full path.
    """

    def __init__(self, user: str = "Mock User", base_url: str = "https://gitlab.mock"):
        self._user = user
        self._base_url = base_url
        self._projects: dict[str, RemoteProject] = {}
        self._branches: dict[str, list[str]] = {}
        self._merge_requests: list[MockMergeRequest] = []
        self._create_failures: dict[str, str] = {}
        self._update_failures: dict[str, str] = {}
        self._query_failures: dict[str, str] = {}
        self._hidden: set[str] = set()
        self._next_iid = 1
        self._call_log: list[MockCall] = []

    @property
    def name(self) -> str:
        return "mock"

    # ── Setup ────────────────────────────────────────────────────

    def add_project(
        self,
        full_path: str,
        external_id: str | None = None,
        name: str | None = None,
        branches: list[str] | None = None,
    ) -> RemoteProject:
        project = RemoteProject(
            external_id=external_id or str(len(self._projects) + 1),
            name=name or full_path,
            full_path=full_path,
        )
        self._projects[full_path] = project
        self._branches[full_path] = list(branches or [])
        return project

    def open_merge_request(
        self,
        full_path: str,
        source_branch: str,
        target_branch: str,
        title: str = "Existing MR",
    ) -> MockMergeRequest:
        """Seed an already-open merge request."""
        mr = MockMergeRequest(
            project_path=full_path,
            iid=str(self._next_iid),
            source_branch=source_branch,
            target_branch=target_branch,
            title=title,
        )
        self._next_iid += 1
        self._merge_requests.append(mr)
        return mr

    def fail_create(self, full_path: str, error: str = "Mock create failure") -> None:
        self._create_failures[full_path] = error

    def fail_update(self, full_path: str, error: str = "Mock update failure") -> None:
        self._update_failures[full_path] = error

    def fail_query(self, full_path: str, error: str = "Mock query failure") -> None:
        self._query_failures[full_path] = error

    def hide_open_merge_requests(self, full_path: str) -> None:
        """Make lookups return nothing even when a request exists."""
        self._hidden.add(full_path)

    # ── Inspection ───────────────────────────────────────────────

    @property
    def merge_requests(self) -> list[MockMergeRequest]:
        return list(self._merge_requests)

    @property
    def call_log(self) -> list[MockCall]:
        return self._call_log

    def calls(self, method: str) -> list[MockCall]:
        return [c for c in self._call_log if c.method == method]

    def reset(self) -> None:
        """Clear call log and injected failures."""
        self._call_log.clear()
        self._create_failures.clear()
        self._update_failures.clear()
        self._query_failures.clear()
        self._hidden.clear()

    # ── SourceControlClient ──────────────────────────────────────

    def _resolve_path(self, project_id: str) -> str:
        if project_id in self._projects:
            return project_id
        for path, project in self._projects.items():
            if project.external_id == project_id:
                return path
        return project_id

    def current_user(self) -> str:
        self._call_log.append(MockCall("current_user"))
        return self._user

    def list_user_projects(self) -> list[RemoteProject]:
        self._call_log.append(MockCall("list_user_projects"))
        return list(self._projects.values())

    def get_project(self, id_or_path: str) -> RemoteProject:
        self._call_log.append(MockCall("get_project", (id_or_path,)))
        path = self._resolve_path(id_or_path)
        if path not in self._projects:
            raise GitlabRequestError("HTTP 404: 404 Project Not Found", status_code=404)
        return self._projects[path]

    def search_branches(self, full_path: str, pattern: str = "") -> list[str]:
        self._call_log.append(MockCall("search_branches", (full_path, pattern)))
        return [b for b in self._branches.get(full_path, []) if b.startswith(pattern)]

    def create_merge_request(
        self,
        project_id: str,
        title: str,
        source_branch: str,
        target_branch: str,
        description: str | None = None,
    ) -> CreateMergeRequestResult:
        self._call_log.append(
            MockCall("create_merge_request", (project_id, title, source_branch, target_branch))
        )
        path = self._resolve_path(project_id)

        if path in self._create_failures:
            return MergeRequestCreateFailed(error=self._create_failures[path], status_code=500)

        for mr in self._merge_requests:
            if (mr.project_path, mr.source_branch, mr.target_branch, mr.state) == (
                path, source_branch, target_branch, "opened"
            ):
                return MergeRequestAlreadyExists(
                    detail="Another open merge request already exists for this source branch"
                )

        mr = MockMergeRequest(
            project_path=path,
            iid=str(self._next_iid),
            source_branch=source_branch,
            target_branch=target_branch,
            title=title,
            description=description,
        )
        self._next_iid += 1
        self._merge_requests.append(mr)
        return MergeRequestCreated(mr_id=mr.iid, mr_url=mr.web_url)

    def list_open_merge_requests(
        self,
        project_full_path: str,
        source_branch: str,
        target_branch: str,
    ) -> list[OpenMergeRequest]:
        self._call_log.append(
            MockCall("list_open_merge_requests", (project_full_path, source_branch, target_branch))
        )
        if project_full_path in self._query_failures:
            raise GitlabRequestError(self._query_failures[project_full_path])
        if project_full_path in self._hidden:
            return []
        return [
            OpenMergeRequest(mr_id=mr.iid, iid=mr.iid, web_url=mr.web_url, state=mr.state)
            for mr in self._merge_requests
            if mr.project_path == project_full_path
            and mr.source_branch == source_branch
            and mr.target_branch == target_branch
            and mr.state == "opened"
        ]

    def update_merge_request_title(
        self,
        project_full_path: str,
        mr_iid: str,
        title: str,
    ) -> str:
        self._call_log.append(
            MockCall("update_merge_request_title", (project_full_path, mr_iid, title))
        )
        if project_full_path in self._update_failures:
            raise GitlabRequestError(
                f"Failed to update MR: {self._update_failures[project_full_path]}"
            )
        for mr in self._merge_requests:
            if mr.project_path == project_full_path and mr.iid == str(mr_iid):
                mr.title = title
                return mr.iid
        raise GitlabRequestError(f"Merge request !{mr_iid} not found", status_code=404)
