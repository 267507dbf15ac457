"""Protocol domain models.

A protocol is the versioned definition an interview runs against: its
stages and prompts, and a codebook registering the node/edge types and
their variables. Protocol files use camelCase keys; the models accept
either spelling.

The protocol name is its true identity. Installed protocols are keyed in
the store by a storage key that is distinct from the name, so reinstalls
are detected by comparing names.
"""

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _ProtocolModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="allow"
    )


class Variable(_ProtocolModel):
    """A codebook variable."""

    name: Optional[str] = None
    type: Optional[str] = None
    options: Optional[List[Any]] = None


class EntityDefinition(_ProtocolModel):
    """Registry entry for one node or edge type."""

    name: Optional[str] = None
    variables: Dict[str, Variable] = Field(default_factory=dict)


class Codebook(_ProtocolModel):
    node: Dict[str, EntityDefinition] = Field(default_factory=dict)
    edge: Dict[str, EntityDefinition] = Field(default_factory=dict)
    ego: Optional[EntityDefinition] = None


class Subject(_ProtocolModel):
    """The entity type a stage or prompt operates on."""

    entity: Literal["node", "edge", "ego"] = "node"
    type: Optional[str] = None


class Prompt(_ProtocolModel):
    id: str
    text: str = ""
    subject: Optional[Subject] = None
    additional_attributes: Dict[str, Any] = Field(default_factory=dict)
    variable: Optional[str] = None
    other_variable: Optional[str] = None
    other_variable_label: Optional[str] = None


class Stage(_ProtocolModel):
    id: str
    type: str = ""
    label: str = ""
    subject: Optional[Subject] = None
    form: Optional[str] = None
    additional_attributes: Dict[str, Any] = Field(default_factory=dict)
    prompts: List[Prompt] = Field(default_factory=list)


class ProtocolDefinition(_ProtocolModel):
    """Fields shared by incoming and installed protocols."""

    name: str = Field(min_length=1)
    description: str = ""
    codebook: Codebook = Field(default_factory=Codebook)
    forms: Dict[str, Any] = Field(default_factory=dict)
    stages: List[Stage] = Field(default_factory=list)

    def get_stage(self, stage_id: str) -> Optional[Stage]:
        for stage in self.stages:
            if stage.id == stage_id:
                return stage
        return None


class Protocol(ProtocolDefinition):
    """A protocol as produced by the import pipeline.

    uid is the key under which the import pipeline placed the protocol's
    assets; it is not the protocol's identity.
    """

    uid: str = Field(min_length=1)


class InstalledProtocol(ProtocolDefinition):
    """A protocol record held in the store."""

    installation_date: datetime

    @classmethod
    def from_protocol(
        cls, protocol: Protocol, installation_date: datetime
    ) -> "InstalledProtocol":
        data = protocol.model_dump(exclude={"uid"})
        return cls(**data, installation_date=installation_date)
