"""
GitLab client — REST v4 for creation and lookup, GraphQL for the rest.

Channel-independent: no click dependency. Built from an explicit
``GitlabSettings``; a missing token fails at construction time.

HTTP status mapping:
    409         → ``MergeRequestAlreadyExists`` (create only)
    401         → ``GitlabAuthError`` (terminates the operation)
    other 4xx/5xx, timeouts → ``GitlabRequestError`` (per resource)
    connection failures     → ``GitlabTransportError``
"""

from __future__ import annotations

import json
import logging
import urllib.error
import urllib.request
from typing import Any
from urllib.parse import quote

from husgit import __version__
from husgit.adapters.base import SourceControlClient
from husgit.adapters.gitlab import queries
from husgit.adapters.gitlab.errors import (
    GitlabAuthError,
    GitlabRequestError,
    GitlabTransportError,
    MissingCredentialError,
)
from husgit.core.config.settings import TOKEN_ENV_VAR, GitlabSettings
from husgit.core.models.merge_request import (
    CreateMergeRequestResult,
    MergeRequestAlreadyExists,
    MergeRequestCreated,
    MergeRequestCreateFailed,
    OpenMergeRequest,
    RemoteProject,
)

logger = logging.getLogger(__name__)

_MAX_PROJECT_PAGES = 100


def _gid_tail(gid: str) -> str:
    """'gid://gitlab/MergeRequest/42' → '42'."""
    return gid.rsplit("/", 1)[-1] if "/" in gid else gid


def _error_detail(exc: urllib.error.HTTPError) -> str:
    """Best-effort message from a GitLab error body."""
    try:
        body = exc.read().decode("utf-8", errors="replace")
    except Exception:
        return exc.reason or ""
    try:
        data = json.loads(body)
    except (json.JSONDecodeError, ValueError):
        return body.strip()[:200] or str(exc.reason)
    if isinstance(data, dict):
        msg = data.get("message") or data.get("error") or data
        if isinstance(msg, list):
            return "; ".join(str(m) for m in msg)
        return str(msg)
    return str(data)


class GitlabClient(SourceControlClient):
    """Bearer-token client for a single GitLab host."""

    def __init__(self, settings: GitlabSettings):
        if settings.token is None or not settings.token.get_secret_value():
            raise MissingCredentialError(TOKEN_ENV_VAR)
        self._settings = settings
        self._token = settings.token.get_secret_value()

    @property
    def name(self) -> str:
        return "gitlab"

    @property
    def settings(self) -> GitlabSettings:
        return self._settings

    # ── Transport ────────────────────────────────────────────────

    def _send(self, method: str, url: str, payload: dict | None = None) -> Any:
        data = json.dumps(payload).encode("utf-8") if payload is not None else None
        req = urllib.request.Request(
            url,
            data=data,
            method=method,
            headers={
                "Authorization": f"Bearer {self._token}",
                "Content-Type": "application/json",
                "Accept": "application/json",
                "User-Agent": f"husgit/{__version__}",
            },
        )
        logger.debug("%s %s", method, url)

        try:
            with urllib.request.urlopen(req, timeout=self._settings.timeout) as resp:
                body = resp.read()
        except urllib.error.HTTPError as e:
            detail = _error_detail(e)
            if e.code == 401:
                raise GitlabAuthError(f"GitLab auth failed: {detail}") from e
            raise GitlabRequestError(f"HTTP {e.code}: {detail}", status_code=e.code) from e
        except TimeoutError as e:
            raise GitlabRequestError(f"Request to {url} timed out") from e
        except urllib.error.URLError as e:
            if isinstance(e.reason, TimeoutError):
                raise GitlabRequestError(f"Request to {url} timed out") from e
            raise GitlabTransportError(
                f"Cannot reach {self._settings.url}: {e.reason}"
            ) from e

        if not body:
            return None
        try:
            return json.loads(body)
        except (json.JSONDecodeError, ValueError) as e:
            raise GitlabRequestError(f"Invalid JSON from {url}") from e

    def _rest(self, method: str, path: str, payload: dict | None = None) -> Any:
        return self._send(method, f"{self._settings.api_url}{path}", payload)

    def _graphql(self, query: str, variables: dict | None = None) -> dict:
        result = self._send(
            "POST",
            self._settings.graphql_url,
            {"query": query, "variables": variables or {}},
        )
        if not isinstance(result, dict):
            raise GitlabRequestError("Empty GraphQL response")
        errors = result.get("errors")
        if errors:
            messages = "; ".join(str(err.get("message", err)) for err in errors)
            raise GitlabRequestError(f"GraphQL error: {messages}")
        return result.get("data") or {}

    # ── Identity & projects ──────────────────────────────────────

    def current_user(self) -> str:
        data = self._graphql(queries.CURRENT_USER)
        user = data.get("currentUser")
        if not user:
            raise GitlabAuthError("GitLab auth failed: token is not bound to a user")
        return user.get("name") or ""

    def list_user_projects(self) -> list[RemoteProject]:
        projects: list[RemoteProject] = []
        after: str | None = None

        for _ in range(_MAX_PROJECT_PAGES):
            data = self._graphql(queries.USER_PROJECTS, {"membership": True, "after": after})
            page = data.get("projects") or {}
            for node in page.get("nodes") or []:
                projects.append(
                    RemoteProject(
                        external_id=_gid_tail(node["id"]),
                        name=node.get("nameWithNamespace") or node["fullPath"],
                        full_path=node["fullPath"],
                    )
                )
            info = page.get("pageInfo") or {}
            if not info.get("hasNextPage"):
                break
            after = info.get("endCursor")

        logger.info("Fetched %d projects", len(projects))
        return projects

    def get_project(self, id_or_path: str) -> RemoteProject:
        data = self._rest("GET", f"/projects/{quote(str(id_or_path), safe='')}")
        return RemoteProject(
            external_id=str(data["id"]),
            name=data.get("name_with_namespace") or data["path_with_namespace"],
            full_path=data["path_with_namespace"],
        )

    def search_branches(self, full_path: str, pattern: str = "") -> list[str]:
        data = self._graphql(
            queries.PROJECT_BRANCHES,
            {"fullPath": full_path, "searchPattern": f"{pattern}*"},
        )
        project = data.get("project") or {}
        repository = project.get("repository") or {}
        return list(repository.get("branchNames") or [])

    # ── Merge requests ───────────────────────────────────────────

    def create_merge_request(
        self,
        project_id: str,
        title: str,
        source_branch: str,
        target_branch: str,
        description: str | None = None,
    ) -> CreateMergeRequestResult:
        payload: dict[str, Any] = {
            "title": title,
            "source_branch": source_branch,
            "target_branch": target_branch,
        }
        if description:
            payload["description"] = description

        try:
            data = self._rest(
                "POST",
                f"/projects/{quote(str(project_id), safe='')}/merge_requests",
                payload,
            )
        except GitlabRequestError as e:
            if e.status_code == 409:
                return MergeRequestAlreadyExists(detail=str(e))
            return MergeRequestCreateFailed(error=str(e), status_code=e.status_code)

        if not isinstance(data, dict) or "iid" not in data or not data.get("web_url"):
            return MergeRequestCreateFailed(error=f"Unexpected create response: {data!r}")
        return MergeRequestCreated(mr_id=str(data["iid"]), mr_url=data["web_url"])

    def list_open_merge_requests(
        self,
        project_full_path: str,
        source_branch: str,
        target_branch: str,
    ) -> list[OpenMergeRequest]:
        data = self._graphql(
            queries.OPEN_MERGE_REQUESTS,
            {
                "fullPath": project_full_path,
                "sourceBranches": [source_branch],
                "targetBranches": [target_branch],
            },
        )
        project = data.get("project")
        if project is None:
            raise GitlabRequestError(f'Project "{project_full_path}" not found')

        nodes = (project.get("mergeRequests") or {}).get("nodes") or []
        return [
            OpenMergeRequest(
                mr_id=_gid_tail(node["id"]),
                iid=str(node["iid"]),
                web_url=node.get("webUrl")
                or f"{self._settings.url}/{project_full_path}/-/merge_requests/{node['iid']}",
                state=node.get("state") or "opened",
            )
            for node in nodes
            if node
        ]

    def update_merge_request_title(
        self,
        project_full_path: str,
        mr_iid: str,
        title: str,
    ) -> str:
        data = self._graphql(
            queries.UPDATE_MERGE_REQUEST_TITLE,
            {"fullPath": project_full_path, "iid": str(mr_iid), "title": title},
        )
        update = data.get("mergeRequestUpdate") or {}
        if update.get("errors"):
            raise GitlabRequestError(
                f"Failed to update MR: {'; '.join(update['errors'])}"
            )
        merge_request = update.get("mergeRequest")
        if not merge_request:
            raise GitlabRequestError("Failed to update MR: no merge request returned")
        return _gid_tail(merge_request["id"])
