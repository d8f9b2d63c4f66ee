import pytest

from packages.vice.builders.containers import (
    analysis_command,
    build_analysis_container,
    build_input_stager,
    build_output_stager,
    first_step,
)
from packages.vice.constants import (
    ANALYSIS_DROPPED_CAPABILITIES,
    STAGER_DROPPED_CAPABILITIES,
)
from packages.vice.exceptions import MalformedJobError
from packages.vice.models.domain.job import Job
from tests.fixtures import job_data, make_job

STAGER_IMAGE = "discoenv/porklock:latest"


def _mounts(container):
    return {m.name: m for m in container.volume_mounts}


class TestInputStager:
    def test_command(self):
        container = build_input_stager(make_job(), STAGER_IMAGE)

        assert container.name == "input-files"
        assert container.image == STAGER_IMAGE
        assert container.command == [
            "nc", "-lk", "-p", "60001", "-e", "porklock",
            "-jar", "/usr/src/app/porklock-standalone.jar",
            "get", "--user", "ipcdev",
            "--source-list", "/input-paths/input-path-list",
            "-m", "ipc-analysis-id,b4c2f44b,UUID",
            "-z", "/etc/porklock/irods-config.properties",
        ]  # fmt: skip
        assert container.working_dir == "/input-paths"

    def test_mounts(self):
        mounts = _mounts(build_input_stager(make_job(), STAGER_IMAGE))

        assert mounts["porklock-config"].mount_path == "/etc/porklock"
        assert mounts["porklock-config"].read_only is True
        assert mounts["input-files"].mount_path == "/home/jovyan/vice"
        assert mounts["input-path-list"].mount_path == "/input-paths"
        assert mounts["input-path-list"].read_only is True

    def test_port_and_security(self):
        container = build_input_stager(make_job(), STAGER_IMAGE)

        assert [(p.name, p.container_port, p.protocol) for p in container.ports] == [
            ("tcp-input", 60001, "TCP")
        ]
        assert container.security_context.run_as_user == 1000
        assert container.security_context.capabilities.drop == STAGER_DROPPED_CAPABILITIES


class TestAnalysisContainer:
    def test_image_and_command(self):
        container = build_analysis_container(make_job())

        assert container.name == "analysis"
        assert container.image == "discoenv/jupyter-lab:beta"
        assert container.command == ["lab", "--port", "8888"]

    def test_entrypoint_precedes_arguments(self):
        data = job_data()
        data["steps"][0]["component"]["container"]["entrypoint"] = "jupyter"

        container = build_analysis_container(Job.model_validate(data))

        assert container.command == ["jupyter", "lab", "--port", "8888"]

    def test_empty_command_left_unset(self):
        data = job_data()
        data["steps"][0]["config"]["params"] = []

        container = build_analysis_container(Job.model_validate(data))

        assert container.command is None

    def test_ports_named_by_index(self):
        data = job_data()
        data["steps"][0]["component"]["container"]["container_ports"] = [
            {"container_port": 8888},
            {"container_port": 8080},
        ]

        container = build_analysis_container(Job.model_validate(data))

        assert [(p.name, p.container_port) for p in container.ports] == [
            ("tcp-a-0", 8888),
            ("tcp-a-1", 8080),
        ]

    def test_mounts_workspace_only(self):
        container = build_analysis_container(make_job())

        assert [(m.name, m.mount_path) for m in container.volume_mounts] == [
            ("input-files", "/home/jovyan/vice")
        ]

    def test_keeps_network_capabilities(self):
        drop = build_analysis_container(make_job()).security_context.capabilities.drop

        assert drop == ANALYSIS_DROPPED_CAPABILITIES
        assert "NET_BIND_SERVICE" not in drop
        assert "NET_RAW" not in drop

    def test_default_working_directory(self):
        data = job_data()
        data["steps"][0]["component"]["container"]["working_directory"] = ""

        container = build_analysis_container(Job.model_validate(data))

        assert container.volume_mounts[0].mount_path == "/de-app-work"

    def test_missing_image_raises(self):
        data = job_data()
        data["steps"][0]["component"]["container"]["image"] = {"name": ""}

        with pytest.raises(MalformedJobError):
            build_analysis_container(Job.model_validate(data))


class TestOutputStager:
    def test_command(self):
        container = build_output_stager(make_job(), STAGER_IMAGE)

        assert container.name == "output-files"
        assert container.command == [
            "nc", "-lk", "-p", "60000", "-e", "porklock",
            "-jar", "/usr/src/app/porklock-standalone.jar",
            "put", "--user", "ipcdev",
            "--destination", "/iplant/home/ipcdev/analyses/jupyter-lab-analysis",
            "-m", "ipc-analysis-id,b4c2f44b,UUID",
            "--exclude", "/excludes/excludes-file",
            "-z", "/etc/porklock/irods-config.properties",
        ]  # fmt: skip

    def test_skip_parent_meta(self):
        job = make_job(**{"skip-parent-meta": True})

        command = build_output_stager(job, STAGER_IMAGE).command

        assert command[-3:] == [
            "--skip-parent-meta",
            "-z",
            "/etc/porklock/irods-config.properties",
        ]

    def test_mounts_and_port(self):
        container = build_output_stager(make_job(), STAGER_IMAGE)
        mounts = _mounts(container)

        assert mounts["excludes-file"].mount_path == "/excludes"
        assert mounts["excludes-file"].read_only is True
        assert mounts["porklock-config"].read_only is True
        assert [(p.name, p.container_port) for p in container.ports] == [
            ("tcp-output", 60000)
        ]


class TestHelpers:
    def test_job_without_steps_raises(self):
        with pytest.raises(MalformedJobError):
            first_step(make_job(steps=[]))

    def test_analysis_command_skips_empty_names_and_values(self):
        data = job_data()
        data["steps"][0]["config"]["params"] = [
            {"name": "", "value": "positional", "order": 0},
            {"name": "--flag", "value": "", "order": 1},
        ]

        step = Job.model_validate(data).steps[0]

        assert analysis_command(step) == ["positional", "--flag"]
