"""
GitLab connection settings — the explicit credential struct.

The client is constructed from a ``GitlabSettings`` value; nothing in
the core reads the process environment. The CLI builds the settings
from ``GITLAB_TOKEN`` / ``GITLAB_URL`` and the config's ``gitlab_url``.
"""

from __future__ import annotations

from collections.abc import Mapping

from pydantic import BaseModel, Field, SecretStr, field_validator

from husgit.core.models.config import DEFAULT_GITLAB_URL

TOKEN_ENV_VAR = "GITLAB_TOKEN"
URL_ENV_VAR = "GITLAB_URL"


class GitlabSettings(BaseModel):
    """Connection parameters for one GitLab host."""

    url: str = DEFAULT_GITLAB_URL
    token: SecretStr | None = None
    timeout: float = Field(default=30.0, gt=0)

    @field_validator("url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @property
    def api_url(self) -> str:
        return f"{self.url}/api/v4"

    @property
    def graphql_url(self) -> str:
        return f"{self.url}/api/graphql"

    @classmethod
    def from_mapping(
        cls,
        environ: Mapping[str, str],
        config_url: str | None = None,
        timeout: float | None = None,
    ) -> GitlabSettings:
        """Build settings from an environment mapping.

        ``GITLAB_URL`` wins over the URL stored in the config file.
        """
        url = environ.get(URL_ENV_VAR) or config_url or DEFAULT_GITLAB_URL
        token = environ.get(TOKEN_ENV_VAR) or None
        kwargs: dict = {"url": url, "token": token}
        if timeout is not None:
            kwargs["timeout"] = timeout
        return cls(**kwargs)
