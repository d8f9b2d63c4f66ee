# Test data and fixtures
import copy
from typing import Any, Dict

from packages.vice.models.domain.job import Job

INVOCATION_ID = "07b04ce2-7757-4b21-9e15-0b4c2f44be26"

# Interactive app job as the apps service submits it
SAMPLE_JOB_DATA: Dict[str, Any] = {
    "uuid": INVOCATION_ID,
    "app_id": "c7f05682-23c8-4182-b9a2-e09650a5f49b",
    "app_name": "JupyterLab Datascience",
    "username": "ipcdev",
    "user_id": "00000000-0000-0000-0000-000000000001",
    "name": "jupyter-lab-analysis",
    "type": "Interactive",
    "execution_target": "interapps",
    "output_dir": "/iplant/home/ipcdev/analyses/jupyter-lab-analysis/",
    "file-metadata": [
        {"attr": "ipc-analysis-id", "value": "b4c2f44b", "unit": "UUID"},
    ],
    "steps": [
        {
            "type": "interactive",
            "component": {
                "name": "jupyter-lab",
                "container": {
                    "image": {"name": "discoenv/jupyter-lab", "tag": "beta"},
                    "entrypoint": "",
                    "working_directory": "/home/jovyan/vice",
                    "uid": 1000,
                    "container_ports": [{"container_port": 8888}],
                },
            },
            "config": {
                "params": [
                    {"name": "--port", "value": "8888", "order": 2},
                    {"name": "lab", "value": "", "order": 1},
                ],
                "input": [
                    {
                        "id": "dataset",
                        "value": "/iplant/home/ipcdev/data.csv",
                        "multiplicity": "single",
                        "retain": False,
                    },
                    {
                        "id": "notebooks",
                        "value": "/iplant/home/ipcdev/notebooks",
                        "multiplicity": "collection",
                        "retain": True,
                    },
                ],
                "output": [{"name": "logs", "retain": False}],
            },
        }
    ],
}


def job_data(**overrides: Any) -> Dict[str, Any]:
    data = copy.deepcopy(SAMPLE_JOB_DATA)
    data.update(overrides)
    return data


def make_job(**overrides: Any) -> Job:
    return Job.model_validate(job_data(**overrides))


def make_ticketed_job(**overrides: Any) -> Job:
    """Sample job whose inputs all carry tickets, so no input stager is needed."""
    data = job_data(**overrides)
    for stepinput in data["steps"][0]["config"]["input"]:
        stepinput["ticket"] = "ticket-1234"
    return Job.model_validate(data)
