from kubernetes.client import V1ConfigMap, V1ObjectMeta

from packages.vice.builders.labels import (
    excludes_config_map_name,
    input_path_list_config_map_name,
    labels_from_job,
)
from packages.vice.constants import EXCLUDES_FILE_NAME, INPUT_PATH_LIST_FILE_NAME
from packages.vice.exceptions import ConfigDerivationError
from packages.vice.models.domain.job import Job


def excludes_file_contents(job: Job) -> str:
    return "".join(f"{path}\n" for path in job.exclude_arguments())


def input_path_list_contents(job: Job, path_list_identifier: str) -> str:
    inputs = job.filter_inputs_without_tickets()
    if not inputs:
        raise ConfigDerivationError(
            f"job {job.invocation_id} has no inputs that need a path list"
        )

    lines = [path_list_identifier]
    for stepinput in inputs:
        if not stepinput.value:
            raise ConfigDerivationError(
                f"input {stepinput.id or stepinput.name!r} of job {job.invocation_id} has no path"
            )
        lines.append(stepinput.irods_path())
    return "".join(f"{line}\n" for line in lines)


def build_excludes_config_map(job: Job) -> V1ConfigMap:
    return V1ConfigMap(
        metadata=V1ObjectMeta(
            name=excludes_config_map_name(job), labels=labels_from_job(job)
        ),
        data={EXCLUDES_FILE_NAME: excludes_file_contents(job)},
    )


def build_input_path_list_config_map(job: Job, path_list_identifier: str) -> V1ConfigMap:
    """Path list read by the input stager.

    Raises:
        ConfigDerivationError: if the job has no ticket-less inputs or one of
            them has no path.
    """
    return V1ConfigMap(
        metadata=V1ObjectMeta(
            name=input_path_list_config_map_name(job), labels=labels_from_job(job)
        ),
        data={
            INPUT_PATH_LIST_FILE_NAME: input_path_list_contents(job, path_list_identifier)
        },
    )
