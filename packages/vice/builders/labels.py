"""Names and labels derived from a job's invocation identity.

Every builder and the admission controller go through these helpers so that
object names, labels and selectors can never drift apart.
"""

import re
from typing import Dict

from packages.vice.constants import APP_LABEL, USERNAME_LABEL
from packages.vice.models.domain.job import Job

MAX_LABEL_VALUE_LENGTH = 63

_invalid_label_chars = re.compile(r"[^-A-Za-z0-9_.]")
_leading_non_alnum = re.compile(r"^[^A-Za-z0-9]+")
_trailing_non_alnum = re.compile(r"[^A-Za-z0-9]+$")


def label_value_string(value: str) -> str:
    """Turn an arbitrary string into a valid Kubernetes label value."""
    cleaned = _invalid_label_chars.sub("-", value)
    cleaned = _leading_non_alnum.sub("", cleaned)
    cleaned = cleaned[:MAX_LABEL_VALUE_LENGTH]
    return _trailing_non_alnum.sub("", cleaned)


def labels_from_job(job: Job) -> Dict[str, str]:
    return {
        APP_LABEL: job.invocation_id,
        "app-name": label_value_string(job.app_name),
        "app-id": job.app_id,
        USERNAME_LABEL: label_value_string(job.submitter),
        "user-id": job.user_id,
    }


def selector_from_job(job: Job) -> Dict[str, str]:
    return {APP_LABEL: job.invocation_id}


def deployment_name(job: Job) -> str:
    return job.invocation_id


def service_name(job: Job) -> str:
    return job.invocation_id


def excludes_config_map_name(job: Job) -> str:
    return f"excludes-file-{job.invocation_id}"


def input_path_list_config_map_name(job: Job) -> str:
    return f"input-path-list-{job.invocation_id}"
