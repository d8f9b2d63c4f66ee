"""
Container specifications for the three roles in an interactive app pod.

The stagers are long-running ``nc -lk`` listeners that hand each accepted
connection to porklock, which either fills the shared workspace (input) or
uploads it (output). The analysis container runs the app image itself.
"""

import posixpath
from typing import List

from kubernetes.client import (
    V1Capabilities,
    V1Container,
    V1ContainerPort,
    V1SecurityContext,
    V1VolumeMount,
)

from packages.vice.constants import (
    ANALYSIS_CONTAINER_NAME,
    ANALYSIS_DROPPED_CAPABILITIES,
    ANALYSIS_PORT_NAME_PREFIX,
    EXCLUDES_FILE_NAME,
    EXCLUDES_MOUNT_PATH,
    EXCLUDES_VOLUME_NAME,
    INPUT_FILES_CONTAINER_NAME,
    INPUT_FILES_PORT,
    INPUT_FILES_PORT_NAME,
    INPUT_FILES_VOLUME_NAME,
    INPUT_PATH_LIST_FILE_NAME,
    INPUT_PATH_LIST_MOUNT_PATH,
    INPUT_PATH_LIST_VOLUME_NAME,
    OUTPUT_FILES_CONTAINER_NAME,
    OUTPUT_FILES_PORT,
    OUTPUT_FILES_PORT_NAME,
    PORKLOCK_CONFIG_FILE,
    PORKLOCK_CONFIG_MOUNT_PATH,
    PORKLOCK_CONFIG_VOLUME_NAME,
    PORKLOCK_JAR,
    STAGER_DROPPED_CAPABILITIES,
)
from packages.vice.exceptions import MalformedJobError
from packages.vice.models.domain.job import Job, Step

TCP = "TCP"


def first_step(job: Job) -> Step:
    if not job.steps:
        raise MalformedJobError(f"job {job.invocation_id} has no steps")
    return job.steps[0]


def workspace_mount_path(job: Job) -> str:
    """Staged files land in the analysis step's working directory."""
    return first_step(job).component.container.working_dir()


def _security_context(job: Job, dropped: List[str]) -> V1SecurityContext:
    return V1SecurityContext(
        run_as_user=first_step(job).component.container.uid,
        capabilities=V1Capabilities(drop=list(dropped)),
    )


def _stager_command(port: int, porklock_args: List[str]) -> List[str]:
    return [
        "nc",
        "-lk",
        "-p",
        str(port),
        "-e",
        "porklock",
        "-jar",
        PORKLOCK_JAR,
        *porklock_args,
        "-z",
        PORKLOCK_CONFIG_FILE,
    ]


def _credentials_mount() -> V1VolumeMount:
    return V1VolumeMount(
        name=PORKLOCK_CONFIG_VOLUME_NAME,
        mount_path=PORKLOCK_CONFIG_MOUNT_PATH,
        read_only=True,
    )


def _workspace_mount(job: Job) -> V1VolumeMount:
    return V1VolumeMount(
        name=INPUT_FILES_VOLUME_NAME, mount_path=workspace_mount_path(job)
    )


def analysis_command(step: Step) -> List[str]:
    command = []
    if step.component.container.entrypoint:
        command.append(step.component.container.entrypoint)
    command.extend(step.arguments())
    return command


def analysis_ports(step: Step) -> List[V1ContainerPort]:
    return [
        V1ContainerPort(
            name=f"{ANALYSIS_PORT_NAME_PREFIX}{index}",
            container_port=port.container_port,
            protocol=TCP,
        )
        for index, port in enumerate(step.component.container.container_ports)
    ]


def build_input_stager(job: Job, stager_image: str) -> V1Container:
    """
    Input downloader. Besides the credentials and workspace mounts it mounts
    the input path list ConfigMap read-only, which is where ``--source-list``
    points.
    """
    source_list = posixpath.join(INPUT_PATH_LIST_MOUNT_PATH, INPUT_PATH_LIST_FILE_NAME)
    return V1Container(
        name=INPUT_FILES_CONTAINER_NAME,
        image=stager_image,
        command=_stager_command(
            INPUT_FILES_PORT, job.input_source_list_arguments(source_list)
        ),
        working_dir=INPUT_PATH_LIST_MOUNT_PATH,
        volume_mounts=[
            _credentials_mount(),
            _workspace_mount(job),
            V1VolumeMount(
                name=INPUT_PATH_LIST_VOLUME_NAME,
                mount_path=INPUT_PATH_LIST_MOUNT_PATH,
                read_only=True,
            ),
        ],
        ports=[
            V1ContainerPort(
                name=INPUT_FILES_PORT_NAME,
                container_port=INPUT_FILES_PORT,
                protocol=TCP,
            )
        ],
        security_context=_security_context(job, STAGER_DROPPED_CAPABILITIES),
    )


def build_analysis_container(job: Job) -> V1Container:
    step = first_step(job)
    image = step.component.container.image
    if not image.name:
        raise MalformedJobError(
            f"the first step of job {job.invocation_id} has no container image"
        )

    # None rather than [] so the image's own entrypoint applies
    command = analysis_command(step) or None

    return V1Container(
        name=ANALYSIS_CONTAINER_NAME,
        image=f"{image.name}:{image.tag}",
        command=command,
        volume_mounts=[_workspace_mount(job)],
        ports=analysis_ports(step),
        security_context=_security_context(job, ANALYSIS_DROPPED_CAPABILITIES),
    )


def build_output_stager(job: Job, stager_image: str) -> V1Container:
    excludes_path = posixpath.join(EXCLUDES_MOUNT_PATH, EXCLUDES_FILE_NAME)
    return V1Container(
        name=OUTPUT_FILES_CONTAINER_NAME,
        image=stager_image,
        command=_stager_command(
            OUTPUT_FILES_PORT, job.final_output_arguments(excludes_path)
        ),
        volume_mounts=[
            _credentials_mount(),
            _workspace_mount(job),
            V1VolumeMount(
                name=EXCLUDES_VOLUME_NAME,
                mount_path=EXCLUDES_MOUNT_PATH,
                read_only=True,
            ),
        ],
        ports=[
            V1ContainerPort(
                name=OUTPUT_FILES_PORT_NAME,
                container_port=OUTPUT_FILES_PORT,
                protocol=TCP,
            )
        ],
        security_context=_security_context(job, STAGER_DROPPED_CAPABILITIES),
    )
