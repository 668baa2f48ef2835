"""Pipelines API client"""

from .pipelines_client import PipelinesClient
from .models import (
    StatusCode,
    ResourceTypeCode,
    GetPipelinesOptions,
    GetRunsOptions,
    GetRunResourcesOptions,
    GetPipelineStepsOptions,
    GetPipelineSourcesOptions,
    Pipeline,
    Run,
    RunResourceVersion,
    PipelineStep,
    PipelineSource,
    RunStep,
)

__all__ = [
    "PipelinesClient",
    "StatusCode",
    "ResourceTypeCode",
    "GetPipelinesOptions",
    "GetRunsOptions",
    "GetRunResourcesOptions",
    "GetPipelineStepsOptions",
    "GetPipelineSourcesOptions",
    "Pipeline",
    "Run",
    "RunResourceVersion",
    "PipelineStep",
    "PipelineSource",
    "RunStep",
]
