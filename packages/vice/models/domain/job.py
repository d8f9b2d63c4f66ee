"""
Job descriptor as submitted by the apps service.

Only the parts needed to compile an interactive app are modelled; unknown
fields in the submitted JSON are ignored. Field aliases follow the JSON the
apps service sends.
"""

import posixpath
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_WORKING_DIRECTORY = "/de-app-work"
COLLECTION_MULTIPLICITY = "collection"


class _JobModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)


class ContainerImage(_JobModel):
    name: str = ""
    tag: str = "latest"


class ContainerPort(_JobModel):
    container_port: int
    host_port: Optional[int] = None
    bind_to_host: bool = False


class Container(_JobModel):
    image: ContainerImage = Field(default_factory=ContainerImage)
    entrypoint: str = ""
    working_directory: str = ""
    uid: int = 0
    container_ports: List[ContainerPort] = Field(default_factory=list)

    def working_dir(self) -> str:
        return self.working_directory or DEFAULT_WORKING_DIRECTORY


class StepComponent(_JobModel):
    name: str = ""
    container: Container = Field(default_factory=Container)


class StepParam(_JobModel):
    id: str = ""
    name: str = ""
    value: str = ""
    order: int = 0
    type: str = ""


class StepInput(_JobModel):
    id: str = ""
    name: str = ""
    value: str = ""
    multiplicity: str = "single"
    retain: bool = False
    type: str = ""
    ticket: str = ""

    def irods_path(self) -> str:
        """Path handed to the stager; collections always end in a slash."""
        if self.multiplicity == COLLECTION_MULTIPLICITY and not self.value.endswith("/"):
            return f"{self.value}/"
        return self.value

    def source(self) -> str:
        """Name the input has inside the working directory."""
        return posixpath.basename(self.value.rstrip("/"))


class StepOutput(_JobModel):
    name: str = ""
    multiplicity: str = "single"
    retain: bool = False
    type: str = ""

    def source(self) -> str:
        return self.name


class StepConfig(_JobModel):
    params: List[StepParam] = Field(default_factory=list)
    inputs: List[StepInput] = Field(default_factory=list, alias="input")
    outputs: List[StepOutput] = Field(default_factory=list, alias="output")


class Step(_JobModel):
    type: str = ""
    component: StepComponent = Field(default_factory=StepComponent)
    config: StepConfig = Field(default_factory=StepConfig)

    def arguments(self) -> List[str]:
        """Command line arguments, params in ``order``; blank names and values are skipped."""
        args = []
        for param in sorted(self.config.params, key=lambda p: p.order):
            if param.name:
                args.append(param.name)
            if param.value:
                args.append(param.value)
        return args


class FileMetadata(_JobModel):
    attr: str
    value: str
    unit: str = ""

    def argument(self) -> List[str]:
        return ["-m", f"{self.attr},{self.value},{self.unit}"]


class Job(_JobModel):
    invocation_id: str = Field(alias="uuid")
    app_id: str = ""
    app_name: str = ""
    submitter: str = Field(alias="username")
    user_id: str = ""
    name: str = ""
    type: str = ""
    execution_target: str = ""
    output_dir: str = ""
    skip_parent_meta: bool = Field(default=False, alias="skip-parent-meta")
    file_metadata: List[FileMetadata] = Field(default_factory=list, alias="file-metadata")
    steps: List[Step] = Field(default_factory=list)

    def inputs(self) -> List[StepInput]:
        return [i for step in self.steps for i in step.config.inputs]

    def outputs(self) -> List[StepOutput]:
        return [o for step in self.steps for o in step.config.outputs]

    def filter_inputs_without_tickets(self) -> List[StepInput]:
        """Inputs the stager must fetch by explicit path."""
        return [i for i in self.inputs() if not i.ticket]

    def has_ticketless_inputs(self) -> bool:
        return len(self.filter_inputs_without_tickets()) > 0

    def exclude_arguments(self) -> List[str]:
        """Paths, relative to the working directory, not uploaded at the end of the job."""
        paths = [i.source() for i in self.inputs() if not i.retain]
        paths.extend(o.source() for o in self.outputs() if not o.retain)
        return paths

    def output_directory(self) -> str:
        return self.output_dir.rstrip("/") if self.output_dir != "/" else self.output_dir

    def _metadata_arguments(self) -> List[str]:
        return [arg for m in self.file_metadata for arg in m.argument()]

    def input_source_list_arguments(self, source_list_path: str) -> List[str]:
        """porklock ``get`` arguments that download every path in the source list."""
        return [
            "get",
            "--user",
            self.submitter,
            "--source-list",
            source_list_path,
            *self._metadata_arguments(),
        ]

    def final_output_arguments(self, excludes_path: str) -> List[str]:
        """porklock ``put`` arguments that upload the working directory to the output folder."""
        args = [
            "put",
            "--user",
            self.submitter,
            "--destination",
            self.output_directory(),
            *self._metadata_arguments(),
            "--exclude",
            excludes_path,
        ]
        if self.skip_parent_meta:
            args.append("--skip-parent-meta")
        return args
