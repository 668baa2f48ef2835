"""
Pipelines API Client - async HTTP клиент для Pipelines сервиса

Без retry: ошибки транспорта и API поднимаются наверх как есть,
повторные попытки - забота шагов pipeline.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from .models import (
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
from core.exceptions import PipelinesAPIError, PipelinesConnectionError


logger = logging.getLogger(__name__)


class PipelinesClient:
    """Клиент для Pipelines REST API"""

    API_PREFIX = "/pipelines/api/v1"
    DEFAULT_TIMEOUT = 30.0

    def __init__(
        self,
        base_url: str,
        token: str,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create reusable HTTP client"""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url + self.API_PREFIX,
                timeout=httpx.Timeout(self.timeout, connect=10.0),
                headers={
                    "Authorization": f"Bearer {self.token}",
                    "Accept": "application/json",
                },
                transport=self._transport,
            )
        return self._client

    async def close(self):
        """Close the HTTP client"""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
        return False

    async def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, str]] = None
    ) -> Any:
        """Выполнить запрос и вернуть JSON (или None для пустого тела)

        Raises:
            PipelinesConnectionError: transport failure
            PipelinesAPIError: non-2xx response or invalid JSON
        """
        client = await self._get_client()
        logger.debug(f"{method} {path} {params or {}}")

        try:
            response = await client.request(method, path, params=params)
        except httpx.RequestError as e:
            raise PipelinesConnectionError(
                f"{method} {path} failed: {type(e).__name__}: {e}"
            ) from e

        if response.is_error:
            raise PipelinesAPIError(
                f"{method} {path} returned HTTP {response.status_code}",
                status_code=response.status_code,
                body=response.text[:500],
            )

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise PipelinesAPIError(
                f"{method} {path} returned invalid JSON",
                status_code=response.status_code,
                body=response.text[:500],
            ) from e

    async def _get_list(self, path: str, params: Dict[str, str]) -> List[Dict[str, Any]]:
        data = await self._request("GET", path, params=params)
        if data is None:
            return []
        if not isinstance(data, list):
            raise PipelinesAPIError(f"GET {path} expected a list, got {type(data).__name__}")
        return data

    async def get_pipelines(self, options: GetPipelinesOptions) -> List[Pipeline]:
        items = await self._get_list("/pipelines", options.to_params())
        return [Pipeline.from_dict(item) for item in items]

    async def get_runs(self, options: GetRunsOptions) -> List[Run]:
        items = await self._get_list("/runs", options.to_params())
        return [Run.from_dict(item) for item in items]

    async def get_run_resource_versions(self, options: GetRunResourcesOptions) -> List[RunResourceVersion]:
        items = await self._get_list("/runResourceVersions", options.to_params())
        return [RunResourceVersion.from_dict(item) for item in items]

    async def get_pipeline_steps(self, options: GetPipelineStepsOptions) -> List[PipelineStep]:
        items = await self._get_list("/pipelineSteps", options.to_params())
        return [PipelineStep.from_dict(item) for item in items]

    async def trigger_pipeline_step(self, step_id: int) -> None:
        """Fire-and-acknowledge: run appears asynchronously"""
        await self._request("POST", f"/pipelineSteps/{step_id}/trigger")
        logger.info(f"Triggered pipeline step {step_id}")

    async def get_pipeline_sources(self, options: GetPipelineSourcesOptions) -> List[PipelineSource]:
        items = await self._get_list("/pipelineSources", options.to_params())
        return [PipelineSource.from_dict(item) for item in items]

    async def sync_pipeline_source(self, source_id: int, branch: str) -> None:
        await self._request("GET", f"/pipelineSources/{source_id}/sync", params={"branch": branch})
        logger.info(f"Requested sync of source {source_id} on branch {branch}")

    async def get_run_steps(self, run_id: int) -> List[RunStep]:
        items = await self._get_list("/steps", {"runIds": str(run_id)})
        return [RunStep.from_dict(item) for item in items]
