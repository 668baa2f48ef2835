"""
Pipelines API models - wire-формат сущностей и опции запросов
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Dict, List, Optional, Sequence, Union


class StatusCode(IntEnum):
    """Status codes used by the Pipelines service for runs, steps and syncs"""
    QUEUED = 4000
    PROCESSING = 4001
    SUCCESS = 4002
    FAILURE = 4003
    ERROR = 4004
    WAITING = 4005
    CANCELLED = 4006
    UNSTABLE = 4007
    SKIPPED = 4008
    TIMEOUT = 4009
    STOPPED = 4010
    DELETED = 4011
    CACHED = 4012
    CANCELLING = 4013
    TIMING_OUT = 4014
    CREATING = 4015
    READY = 4016
    ONLINE = 4017
    OFFLINE = 4018
    UNHEALTHY = 4019
    ONLINE_REQUESTED = 4020
    OFFLINE_REQUESTED = 4021
    PENDING_APPROVAL = 4022

    @property
    def label(self) -> str:
        return self.name.lower().replace("_", " ")

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES

    @property
    def is_failure(self) -> bool:
        return self in FAILURE_STATUSES

    @classmethod
    def parse(cls, value: Any) -> Optional["StatusCode"]:
        """Unknown codes map to None instead of raising"""
        try:
            return cls(int(value))
        except (TypeError, ValueError):
            return None


TERMINAL_STATUSES = frozenset({
    StatusCode.SUCCESS,
    StatusCode.FAILURE,
    StatusCode.ERROR,
    StatusCode.CANCELLED,
    StatusCode.UNSTABLE,
    StatusCode.SKIPPED,
    StatusCode.TIMEOUT,
    StatusCode.STOPPED,
    StatusCode.DELETED,
    StatusCode.CACHED,
})

FAILURE_STATUSES = frozenset({
    StatusCode.FAILURE,
    StatusCode.ERROR,
    StatusCode.CANCELLED,
    StatusCode.TIMEOUT,
    StatusCode.STOPPED,
})


class ResourceTypeCode(IntEnum):
    """Resource types attached to runs (only git matters for matching)"""
    IMAGE = 2000
    GIT_REPO = 2004
    PROPERTY_BAG = 2005
    FILE_SPEC = 2010
    BUILD_INFO = 2011


# Query options


def _join(value: Union[None, int, str, Sequence[Any]]) -> Optional[str]:
    """Comma-join list filters, the API takes `ids=1,2,3`"""
    if value is None:
        return None
    if isinstance(value, (list, tuple)):
        if not value:
            return None
        return ",".join(str(v) for v in value)
    return str(value)


def _params(**values: Any) -> Dict[str, str]:
    """Build query params dropping unset values"""
    params = {}
    for key, value in values.items():
        if value is None or value == "":
            continue
        if isinstance(value, bool):
            value = "true" if value else "false"
        params[key] = str(value)
    return params


@dataclass
class GetPipelinesOptions:
    sort_by: Optional[str] = None
    filter_by: Optional[str] = None
    names: Union[None, str, List[str]] = None
    light: bool = True
    limit: Optional[int] = None

    def to_params(self) -> Dict[str, str]:
        return _params(
            sortBy=self.sort_by,
            filterBy=self.filter_by,
            names=_join(self.names),
            light=self.light,
            limit=self.limit,
        )


@dataclass
class GetRunsOptions:
    pipeline_ids: Union[None, int, List[int]] = None
    run_ids: Union[None, int, List[int]] = None
    status_codes: Union[None, int, List[int]] = None
    sort_by: Optional[str] = None
    sort_order: Optional[int] = None
    limit: Optional[int] = None
    light: bool = True

    def to_params(self) -> Dict[str, str]:
        return _params(
            pipelineIds=_join(self.pipeline_ids),
            runIds=_join(self.run_ids),
            statusCodes=_join(self.status_codes),
            sortBy=self.sort_by,
            sortOrder=self.sort_order,
            limit=self.limit,
            light=self.light,
        )


@dataclass
class GetRunResourcesOptions:
    pipeline_source_ids: Union[None, int, List[int]] = None
    run_ids: Union[None, int, List[int]] = None
    sort_by: Optional[str] = None
    sort_order: Optional[int] = None

    def to_params(self) -> Dict[str, str]:
        return _params(
            pipelineSourceIds=_join(self.pipeline_source_ids),
            runIds=_join(self.run_ids),
            sortBy=self.sort_by,
            sortOrder=self.sort_order,
        )


@dataclass
class GetPipelineStepsOptions:
    pipeline_ids: Union[None, int, List[int]] = None
    pipeline_source_ids: Union[None, int, List[int]] = None
    names: Union[None, str, List[str]] = None

    def to_params(self) -> Dict[str, str]:
        return _params(
            pipelineIds=_join(self.pipeline_ids),
            pipelineSourceIds=_join(self.pipeline_source_ids),
            names=_join(self.names),
        )


@dataclass
class GetPipelineSourcesOptions:
    pipeline_source_ids: Union[None, int, List[int]] = None
    branch: Optional[str] = None
    light: bool = True

    def to_params(self) -> Dict[str, str]:
        return _params(
            pipelineSourceIds=_join(self.pipeline_source_ids),
            branch=self.branch,
            light=self.light,
        )


# Entities


@dataclass
class Pipeline:
    pipeline_id: int
    name: str = ""
    branch: str = ""
    latest_run_id: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Pipeline":
        return cls(
            pipeline_id=int(data["id"]),
            name=data.get("name", ""),
            branch=data.get("pipelineSourceBranch", ""),
            latest_run_id=data.get("latestRunId"),
        )


@dataclass
class Run:
    run_id: int
    run_number: int
    pipeline_id: Optional[int] = None
    status_code: Optional[StatusCode] = None
    created_at: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Run":
        run_number = data.get("runNumber")
        return cls(
            run_id=int(data["id"]),
            run_number=int(run_number) if run_number is not None else -1,
            pipeline_id=data.get("pipelineId"),
            status_code=StatusCode.parse(data.get("statusCode")),
            created_at=data.get("createdAt", ""),
        )


@dataclass
class RunResourceVersion:
    run_id: int
    resource_type_code: Optional[int] = None
    resource_name: str = ""
    commit_sha: str = ""

    @property
    def is_git_repo(self) -> bool:
        return self.resource_type_code == ResourceTypeCode.GIT_REPO

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RunResourceVersion":
        bag = data.get("resourceVersionContentPropertyBag") or {}
        return cls(
            run_id=int(data["runId"]),
            resource_type_code=data.get("resourceTypeCode"),
            resource_name=data.get("resourceName", ""),
            commit_sha=bag.get("commitSha", ""),
        )


@dataclass
class PipelineStep:
    step_id: int
    name: str = ""
    pipeline_id: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PipelineStep":
        return cls(
            step_id=int(data["id"]),
            name=data.get("name", ""),
            pipeline_id=data.get("pipelineId"),
        )


@dataclass
class PipelineSource:
    source_id: int
    branch: str = ""
    is_syncing: bool = False
    last_sync_status: Optional[StatusCode] = None
    last_sync_logs: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PipelineSource":
        return cls(
            source_id=int(data["id"]),
            branch=data.get("branch", ""),
            is_syncing=bool(data.get("isSyncing", False)),
            last_sync_status=StatusCode.parse(data.get("lastSyncStatusCode")),
            last_sync_logs=data.get("lastSyncLogs") or "",
        )


@dataclass
class RunStep:
    """Step execution inside a run (not the local orchestration step)"""
    step_id: int
    name: str = ""
    status_code: Optional[StatusCode] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RunStep":
        return cls(
            step_id=int(data["id"]),
            name=data.get("name", ""),
            status_code=StatusCode.parse(data.get("statusCode")),
        )
