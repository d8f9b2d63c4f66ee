from typing import Optional

from kubernetes.client import (
    V1Container,
    V1Deployment,
    V1ObjectMeta,
    V1Service,
    V1ServicePort,
    V1ServiceSpec,
)

from packages.vice.builders.labels import labels_from_job, selector_from_job, service_name
from packages.vice.constants import (
    ANALYSIS_CONTAINER_NAME,
    INPUT_FILES_PORT,
    INPUT_FILES_PORT_NAME,
    OUTPUT_FILES_PORT,
    OUTPUT_FILES_PORT_NAME,
)
from packages.vice.models.domain.job import Job


def _analysis_container(deployment: V1Deployment) -> Optional[V1Container]:
    for container in deployment.spec.template.spec.containers:
        if container.name == ANALYSIS_CONTAINER_NAME:
            return container
    return None


def build_service(job: Job, deployment: V1Deployment) -> V1Service:
    """
    Service exposing the stager ports and every port of the analysis container.

    Analysis ports are read from the built deployment rather than the job so
    the service always mirrors what the pod exposes. Targets are port names.
    """
    ports = [
        V1ServicePort(
            name=OUTPUT_FILES_PORT_NAME,
            protocol="TCP",
            port=OUTPUT_FILES_PORT,
            target_port=OUTPUT_FILES_PORT_NAME,
        ),
        V1ServicePort(
            name=INPUT_FILES_PORT_NAME,
            protocol="TCP",
            port=INPUT_FILES_PORT,
            target_port=INPUT_FILES_PORT_NAME,
        ),
    ]

    analysis = _analysis_container(deployment)
    if analysis is not None:
        for port in analysis.ports or []:
            ports.append(
                V1ServicePort(
                    name=port.name,
                    protocol=port.protocol,
                    port=port.container_port,
                    target_port=port.name,
                )
            )

    return V1Service(
        metadata=V1ObjectMeta(name=service_name(job), labels=labels_from_job(job)),
        spec=V1ServiceSpec(selector=selector_from_job(job), ports=ports),
    )
