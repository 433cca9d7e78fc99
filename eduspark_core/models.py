"""
Core data models for generated diagrams.

These models define the JSON contract produced by the content-generation
flows and consumed by the renderers:
- ConceptMap: positioned nodes with a kind (principal/concepto/conector)
- MindMap: a central title plus positioned branches with child bullets
- Flowchart: positioned nodes with a shape kind (start-end/process/decision)

Field Naming Convention:
- Connections use `source` and `target` internally
- `from`/`to` are accepted on input and produced on output, since that is
  what the generation flows emit (`from` is a Python keyword)
"""

from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from .layout import parse_length


class DiagramType(str, Enum):
    """Content type tags used by the generation flows."""
    CONCEPT_MAP = "concept-map-data"
    MIND_MAP = "mind-map-data"
    FLOWCHART = "flowchart-data"


class ConceptKind(str, Enum):
    """Role of a node in a concept map."""
    PRINCIPAL = "principal"
    CONCEPT = "concepto"
    CONNECTOR = "conector"


class FlowKind(str, Enum):
    """Shape of a node in a flowchart."""
    START_END = "start-end"
    PROCESS = "process"
    DECISION = "decision"


class DiagramFormatError(ValueError):
    """Raised when a payload is not a recognisable diagram."""


class Position(BaseModel):
    """
    Initial placement of a node inside its container.

    Values are CSS-like lengths: numbers are pixels, strings may carry a
    `px` or `%` suffix. Mind maps normally use percentages.
    """
    top: Union[float, str] = 0
    left: Union[float, str] = 0

    @field_validator("top", "left")
    @classmethod
    def check_length(cls, value: Union[float, str]) -> Union[float, str]:
        """Reject values the renderers cannot place (e.g. "auto", "1em")."""
        parse_length(value)
        return value


class Connection(BaseModel):
    """
    A directed connection between two node ids.

    Accepts `from`/`to` on input. Identity is the pair; duplicates are kept.
    """
    source: str
    target: str

    @model_validator(mode='before')
    @classmethod
    def convert_legacy_fields(cls, data: Any) -> Any:
        """Convert 'from'/'to' fields to 'source'/'target'."""
        if isinstance(data, dict):
            data = dict(data)
            if 'from' in data and 'source' not in data:
                data['source'] = data.pop('from')
            if 'to' in data and 'target' not in data:
                data['target'] = data.pop('to')
        return data

    def to_json_dict(self) -> dict:
        return {"from": self.source, "to": self.target}


class ConceptNode(BaseModel):
    """A node in a concept map."""
    id: str
    label: str = ""
    type: ConceptKind = ConceptKind.CONCEPT
    position: Position = Field(default_factory=Position)
    # Optional explicit size; estimated from the label when omitted
    width: Optional[float] = None
    height: Optional[float] = None


class FlowNode(BaseModel):
    """A node in a flowchart."""
    id: str
    label: str = ""
    type: FlowKind = FlowKind.PROCESS
    position: Position = Field(default_factory=Position)
    width: Optional[float] = None
    height: Optional[float] = None


class Branch(BaseModel):
    """A branch of a mind map, attached to the central title."""
    id: str
    title: str = ""
    children: list[str] = Field(default_factory=list)
    position: Position = Field(default_factory=Position)
    width: Optional[float] = None
    height: Optional[float] = None


class ConceptMap(BaseModel):
    """Concept map: nodes joined by straight connectors."""
    type: DiagramType = DiagramType.CONCEPT_MAP
    title: str = ""
    nodes: list[ConceptNode] = Field(default_factory=list)
    connections: list[Connection] = Field(default_factory=list)

    def get_node(self, node_id: str) -> Optional[ConceptNode]:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def to_json_dict(self) -> dict:
        data = self.model_dump(mode="json", exclude={"connections"})
        data["connections"] = [c.to_json_dict() for c in self.connections]
        return data


class Flowchart(BaseModel):
    """Flowchart: shaped nodes joined by arrowed elbow connectors."""
    type: DiagramType = DiagramType.FLOWCHART
    title: str = ""
    nodes: list[FlowNode] = Field(default_factory=list)
    connections: list[Connection] = Field(default_factory=list)

    def get_node(self, node_id: str) -> Optional[FlowNode]:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def to_json_dict(self) -> dict:
        data = self.model_dump(mode="json", exclude={"connections"})
        data["connections"] = [c.to_json_dict() for c in self.connections]
        return data


# Id of the implicit root node of a mind map
CENTRAL_NODE_ID = "central"


class MindMap(BaseModel):
    """
    Mind map: the title is the root node, every branch hangs off it.

    The edge set is implicit (root -> each branch).
    """
    type: DiagramType = DiagramType.MIND_MAP
    title: str = ""
    branches: list[Branch] = Field(default_factory=list)

    @property
    def connections(self) -> list[Connection]:
        return [Connection(source=CENTRAL_NODE_ID, target=b.id) for b in self.branches]

    def get_branch(self, branch_id: str) -> Optional[Branch]:
        for branch in self.branches:
            if branch.id == branch_id:
                return branch
        return None

    def to_json_dict(self) -> dict:
        return self.model_dump(mode="json")


Diagram = Union[ConceptMap, MindMap, Flowchart]

_MODELS_BY_TYPE: dict[DiagramType, type[BaseModel]] = {
    DiagramType.CONCEPT_MAP: ConceptMap,
    DiagramType.MIND_MAP: MindMap,
    DiagramType.FLOWCHART: Flowchart,
}

_FLOW_KINDS = {k.value for k in FlowKind}

# Static views from the same generation flows; they have no nodes to drag
STATIC_CONTENT_TYPES = frozenset({"venn-diagram-data", "comparison-table-data", "timeline-data"})


def _guess_type(data: dict) -> Optional[DiagramType]:
    """Infer the diagram variant from the payload shape."""
    if "branches" in data:
        return DiagramType.MIND_MAP
    nodes = data.get("nodes")
    if isinstance(nodes, list) and "connections" in data:
        node_types = {n.get("type") for n in nodes if isinstance(n, dict)}
        if node_types and node_types <= _FLOW_KINDS:
            return DiagramType.FLOWCHART
        return DiagramType.CONCEPT_MAP
    return None


def parse_diagram(data: Any, diagram_type: Optional[str] = None) -> Diagram:
    """
    Build a diagram model from a JSON dict.

    The variant comes from `diagram_type`, the payload's `type` tag, or the
    payload shape, in that order.

    Raises:
        DiagramFormatError: if the payload is not a dict, names a static
            content type, the variant cannot be determined, or the payload
            does not match the variant.
    """
    if not isinstance(data, dict):
        raise DiagramFormatError(f"Expected a JSON object, got {type(data).__name__}")

    raw_type = diagram_type or data.get("type")
    if raw_type is not None:
        if isinstance(raw_type, str) and raw_type in STATIC_CONTENT_TYPES:
            raise DiagramFormatError(f"{raw_type} is a static view, not an interactive diagram")
        try:
            kind = DiagramType(raw_type)
        except ValueError:
            raise DiagramFormatError(f"Unknown diagram type: {raw_type}") from None
    else:
        kind = _guess_type(data)
        if kind is None:
            raise DiagramFormatError("Cannot determine diagram type from payload")

    payload = {k: v for k, v in data.items() if k != "type"}
    try:
        return _MODELS_BY_TYPE[kind](type=kind, **payload)
    except ValidationError as e:
        raise DiagramFormatError(f"Invalid {kind.value} payload: {e}") from e
