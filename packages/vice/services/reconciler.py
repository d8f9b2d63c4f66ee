"""
Create-or-replace of an interactive app's cluster objects.

Every object is compiled before the first API call, so a job that cannot be
compiled leaves nothing behind. Objects are then applied in a fixed order:
excludes ConfigMap, input path list ConfigMap (when the job needs one),
Deployment, then Service. The first failure stops the sequence; whatever was
already applied stays in place for the next launch of the same invocation id
to converge on.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Callable, Optional

from kubernetes.client import AppsV1Api, CoreV1Api, V1ConfigMap, V1Deployment, V1Service
from kubernetes.client.rest import ApiException
from urllib3.exceptions import HTTPError

from common.core.telemetry import get_logger, trace_span
from packages.vice.builders.config_maps import (
    build_excludes_config_map,
    build_input_path_list_config_map,
)
from packages.vice.builders.deployment import build_deployment
from packages.vice.builders.service import build_service
from packages.vice.exceptions import ReconcileError
from packages.vice.models.domain.job import Job

logger = get_logger(__name__)


@dataclass(frozen=True)
class CompiledWorkload:
    excludes_config_map: V1ConfigMap
    input_path_list_config_map: Optional[V1ConfigMap]
    deployment: V1Deployment
    service: V1Service


def compile_workload(job: Job, stager_image: str, path_list_identifier: str) -> CompiledWorkload:
    """
    Build every object for ``job`` without touching the cluster.

    Raises:
        MalformedJobError: if the job has no steps or no analysis image.
        ConfigDerivationError: if an input has no path.
    """
    deployment = build_deployment(job, stager_image)
    path_list = None
    if job.has_ticketless_inputs():
        path_list = build_input_path_list_config_map(job, path_list_identifier)
    return CompiledWorkload(
        excludes_config_map=build_excludes_config_map(job),
        input_path_list_config_map=path_list,
        deployment=deployment,
        service=build_service(job, deployment),
    )


class Reconciler:
    """Applies compiled objects to one namespace of the cluster."""

    def __init__(self, core_v1: CoreV1Api, apps_v1: AppsV1Api, namespace: str):
        self.core_v1 = core_v1
        self.apps_v1 = apps_v1
        self.namespace = namespace

    async def _call(self, action: str, kind: str, obj_name: str, fn: Callable[..., Any], **kwargs):
        try:
            return await asyncio.to_thread(fn, namespace=self.namespace, **kwargs)
        except ApiException as e:
            raise ReconcileError(f"Failed to {action} {kind} {obj_name}: {e}") from e
        except HTTPError as e:
            raise ReconcileError(
                f"Failed to {action} {kind} {obj_name}: cluster unreachable: {e}"
            ) from e

    async def _exists(self, kind: str, obj_name: str, read: Callable[..., Any]) -> bool:
        try:
            await self._call("look up", kind, obj_name, read, name=obj_name)
        except ReconcileError as e:
            cause = e.__cause__
            if isinstance(cause, ApiException) and cause.status == 404:
                return False
            raise
        return True

    async def _upsert(
        self,
        kind: str,
        body: Any,
        read: Callable[..., Any],
        create: Callable[..., Any],
        replace: Callable[..., Any],
    ) -> None:
        obj_name = body.metadata.name
        if await self._exists(kind, obj_name, read):
            await self._call("replace", kind, obj_name, replace, name=obj_name, body=body)
            logger.info(f"Replaced {kind} {obj_name} in {self.namespace}")
        else:
            await self._call("create", kind, obj_name, create, body=body)
            logger.info(f"Created {kind} {obj_name} in {self.namespace}")

    async def _apply_config_map(self, config_map: V1ConfigMap) -> None:
        await self._upsert(
            "ConfigMap",
            config_map,
            self.core_v1.read_namespaced_config_map,
            self.core_v1.create_namespaced_config_map,
            self.core_v1.replace_namespaced_config_map,
        )

    async def _apply_deployment(self, deployment: V1Deployment, service: V1Service) -> None:
        await self._upsert(
            "Deployment",
            deployment,
            self.apps_v1.read_namespaced_deployment,
            self.apps_v1.create_namespaced_deployment,
            self.apps_v1.replace_namespaced_deployment,
        )

        # An existing Service is left alone: the port layout of a running
        # invocation does not change
        obj_name = service.metadata.name
        if not await self._exists("Service", obj_name, self.core_v1.read_namespaced_service):
            await self._call(
                "create", "Service", obj_name, self.core_v1.create_namespaced_service, body=service
            )
            logger.info(f"Created Service {obj_name} in {self.namespace}")

    @trace_span
    async def upsert_excludes_config_map(self, job: Job) -> None:
        await self._apply_config_map(build_excludes_config_map(job))

    @trace_span
    async def upsert_input_path_list_config_map(
        self, job: Job, path_list_identifier: str
    ) -> None:
        await self._apply_config_map(
            build_input_path_list_config_map(job, path_list_identifier)
        )

    @trace_span
    async def upsert_deployment(self, job: Job, stager_image: str) -> V1Deployment:
        """Upsert the Deployment, then create its Service if there is none yet."""
        deployment = build_deployment(job, stager_image)
        await self._apply_deployment(deployment, build_service(job, deployment))
        return deployment

    @trace_span
    async def reconcile(
        self, job: Job, stager_image: str, path_list_identifier: str
    ) -> V1Deployment:
        workload = compile_workload(job, stager_image, path_list_identifier)

        await self._apply_config_map(workload.excludes_config_map)
        if workload.input_path_list_config_map is not None:
            await self._apply_config_map(workload.input_path_list_config_map)
        await self._apply_deployment(workload.deployment, workload.service)
        return workload.deployment
