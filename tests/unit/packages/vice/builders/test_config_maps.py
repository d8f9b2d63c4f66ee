import pytest

from packages.vice.builders.config_maps import (
    build_excludes_config_map,
    build_input_path_list_config_map,
    excludes_file_contents,
    input_path_list_contents,
)
from packages.vice.exceptions import ConfigDerivationError
from tests.fixtures import INVOCATION_ID, job_data, make_job, make_ticketed_job
from packages.vice.models.domain.job import Job

IDENTIFIER = "# application/vnd.de.path-list+csv; version=1"


class TestExcludesConfigMap:
    def test_contents_list_unretained_inputs_and_outputs(self):
        assert excludes_file_contents(make_job()) == "data.csv\nlogs\n"

    def test_contents_empty_when_everything_is_retained(self):
        data = job_data()
        config = data["steps"][0]["config"]
        for item in config["input"] + config["output"]:
            item["retain"] = True

        assert excludes_file_contents(Job.model_validate(data)) == ""

    def test_config_map(self):
        job = make_job()

        cm = build_excludes_config_map(job)

        assert cm.metadata.name == f"excludes-file-{INVOCATION_ID}"
        assert cm.metadata.labels["app"] == INVOCATION_ID
        assert cm.data == {"excludes-file": "data.csv\nlogs\n"}

    def test_built_even_without_ticketless_inputs(self):
        cm = build_excludes_config_map(make_ticketed_job())

        assert cm.data["excludes-file"] == "data.csv\nlogs\n"


class TestInputPathListConfigMap:
    def test_contents_start_with_identifier(self):
        contents = input_path_list_contents(make_job(), IDENTIFIER)

        assert contents == (
            f"{IDENTIFIER}\n"
            "/iplant/home/ipcdev/data.csv\n"
            "/iplant/home/ipcdev/notebooks/\n"
        )

    def test_ticketed_inputs_are_left_out(self):
        data = job_data()
        data["steps"][0]["config"]["input"][0]["ticket"] = "ticket-1234"

        contents = input_path_list_contents(Job.model_validate(data), IDENTIFIER)

        assert "/iplant/home/ipcdev/data.csv" not in contents
        assert "/iplant/home/ipcdev/notebooks/" in contents

    def test_config_map(self):
        cm = build_input_path_list_config_map(make_job(), IDENTIFIER)

        assert cm.metadata.name == f"input-path-list-{INVOCATION_ID}"
        assert cm.metadata.labels["username"] == "ipcdev"
        assert list(cm.data) == ["input-path-list"]

    def test_no_ticketless_inputs_raises(self):
        with pytest.raises(ConfigDerivationError):
            build_input_path_list_config_map(make_ticketed_job(), IDENTIFIER)

    def test_input_without_path_raises(self):
        data = job_data()
        data["steps"][0]["config"]["input"][0]["value"] = ""

        with pytest.raises(ConfigDerivationError):
            build_input_path_list_config_map(Job.model_validate(data), IDENTIFIER)
