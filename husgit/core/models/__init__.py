"""
Domain models — configuration snapshot and merge request values.

All models are re-exported here for convenient access:

    from husgit.core.models import HusgitConfig, Environment, BranchPair
"""

from husgit.core.models.config import (
    DEFAULT_GITLAB_URL,
    Group,
    HusgitConfig,
    ProjectConfig,
    RegistryError,
)
from husgit.core.models.flow import Direction, Environment, chain_problems
from husgit.core.models.merge_request import (
    NO_MR_FOUND,
    BranchPair,
    CreateMergeRequestResult,
    EnvironmentPair,
    MergeRequestAlreadyExists,
    MergeRequestCreated,
    MergeRequestCreateFailed,
    MergeRequestOutcome,
    OpenMergeRequest,
    OpenMergeRequestRecord,
    OutcomeStatus,
    RemoteProject,
)

__all__ = [
    "DEFAULT_GITLAB_URL",
    "NO_MR_FOUND",
    # merge_request.py
    "BranchPair",
    "CreateMergeRequestResult",
    # flow.py
    "Direction",
    "Environment",
    "EnvironmentPair",
    # config.py
    "Group",
    "HusgitConfig",
    "MergeRequestAlreadyExists",
    "MergeRequestCreateFailed",
    "MergeRequestCreated",
    "MergeRequestOutcome",
    "OpenMergeRequest",
    "OpenMergeRequestRecord",
    "OutcomeStatus",
    "ProjectConfig",
    "RegistryError",
    "RemoteProject",
    "chain_problems",
]
