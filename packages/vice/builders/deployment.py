from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Tuple

from kubernetes.client import (
    V1ConfigMapVolumeSource,
    V1Container,
    V1Deployment,
    V1DeploymentSpec,
    V1EmptyDirVolumeSource,
    V1LabelSelector,
    V1ObjectMeta,
    V1PodSpec,
    V1PodTemplateSpec,
    V1SecretVolumeSource,
    V1Volume,
)

from packages.vice.builders.containers import (
    build_analysis_container,
    build_input_stager,
    build_output_stager,
)
from packages.vice.builders.labels import (
    deployment_name,
    excludes_config_map_name,
    input_path_list_config_map_name,
    labels_from_job,
    selector_from_job,
)
from packages.vice.constants import (
    ANALYSIS_CONTAINER_NAME,
    EXCLUDES_VOLUME_NAME,
    INPUT_FILES_CONTAINER_NAME,
    INPUT_FILES_VOLUME_NAME,
    INPUT_PATH_LIST_VOLUME_NAME,
    OUTPUT_FILES_CONTAINER_NAME,
    PORKLOCK_CONFIG_SECRET_NAME,
    PORKLOCK_CONFIG_VOLUME_NAME,
)
from packages.vice.models.domain.job import Job


@dataclass(frozen=True)
class PodLayout:
    volumes: Tuple[str, ...]
    containers: Tuple[str, ...]


class PodTopology(Enum):
    """The pod shapes an interactive app can compile to."""

    WITH_INPUT_STAGER = PodLayout(
        volumes=(
            INPUT_PATH_LIST_VOLUME_NAME,
            INPUT_FILES_VOLUME_NAME,
            PORKLOCK_CONFIG_VOLUME_NAME,
            EXCLUDES_VOLUME_NAME,
        ),
        containers=(
            INPUT_FILES_CONTAINER_NAME,
            ANALYSIS_CONTAINER_NAME,
            OUTPUT_FILES_CONTAINER_NAME,
        ),
    )
    WITHOUT_INPUT_STAGER = PodLayout(
        volumes=(
            INPUT_FILES_VOLUME_NAME,
            PORKLOCK_CONFIG_VOLUME_NAME,
            EXCLUDES_VOLUME_NAME,
        ),
        containers=(ANALYSIS_CONTAINER_NAME, OUTPUT_FILES_CONTAINER_NAME),
    )

    @property
    def volumes(self) -> Tuple[str, ...]:
        return self.value.volumes

    @property
    def containers(self) -> Tuple[str, ...]:
        return self.value.containers


def pod_topology(has_ticketless_inputs: bool) -> PodTopology:
    if has_ticketless_inputs:
        return PodTopology.WITH_INPUT_STAGER
    return PodTopology.WITHOUT_INPUT_STAGER


def _volumes_by_name(job: Job) -> Dict[str, V1Volume]:
    return {
        INPUT_PATH_LIST_VOLUME_NAME: V1Volume(
            name=INPUT_PATH_LIST_VOLUME_NAME,
            config_map=V1ConfigMapVolumeSource(
                name=input_path_list_config_map_name(job)
            ),
        ),
        INPUT_FILES_VOLUME_NAME: V1Volume(
            name=INPUT_FILES_VOLUME_NAME, empty_dir=V1EmptyDirVolumeSource()
        ),
        PORKLOCK_CONFIG_VOLUME_NAME: V1Volume(
            name=PORKLOCK_CONFIG_VOLUME_NAME,
            secret=V1SecretVolumeSource(secret_name=PORKLOCK_CONFIG_SECRET_NAME),
        ),
        EXCLUDES_VOLUME_NAME: V1Volume(
            name=EXCLUDES_VOLUME_NAME,
            config_map=V1ConfigMapVolumeSource(name=excludes_config_map_name(job)),
        ),
    }


def deployment_volumes(job: Job) -> List[V1Volume]:
    available = _volumes_by_name(job)
    topology = pod_topology(job.has_ticketless_inputs())
    return [available[name] for name in topology.volumes]


def deployment_containers(job: Job, stager_image: str) -> List[V1Container]:
    builders = {
        INPUT_FILES_CONTAINER_NAME: lambda: build_input_stager(job, stager_image),
        ANALYSIS_CONTAINER_NAME: lambda: build_analysis_container(job),
        OUTPUT_FILES_CONTAINER_NAME: lambda: build_output_stager(job, stager_image),
    }
    topology = pod_topology(job.has_ticketless_inputs())
    return [builders[role]() for role in topology.containers]


def build_deployment(job: Job, stager_image: str) -> V1Deployment:
    """
    Compile a job into its single-replica Deployment.

    The pod always restarts its containers; it lives for the whole
    interactive session. The selector matches on ``app`` only.

    Raises:
        MalformedJobError: if the job has no steps or no analysis image.
    """
    labels = labels_from_job(job)

    return V1Deployment(
        metadata=V1ObjectMeta(name=deployment_name(job), labels=labels),
        spec=V1DeploymentSpec(
            replicas=1,
            selector=V1LabelSelector(match_labels=selector_from_job(job)),
            template=V1PodTemplateSpec(
                metadata=V1ObjectMeta(labels=labels),
                spec=V1PodSpec(
                    restart_policy="Always",
                    volumes=deployment_volumes(job),
                    containers=deployment_containers(job, stager_image),
                ),
            ),
        ),
    )
