"""
Tests for diagram parsing and validation.
"""

import pytest

from eduspark_core import (
    CENTRAL_NODE_ID,
    ConceptKind,
    ConceptMap,
    DiagramFormatError,
    Flowchart,
    FlowKind,
    MindMap,
    parse_diagram,
    validate_diagram,
    validation_summary,
)
from eduspark_core.models import Connection
from eduspark_core.validation import IssueSeverity


class TestParseDiagram:
    """Payload -> model conversion"""

    def test_concept_map_from_type_tag(self, concept_map_data):
        diagram = parse_diagram(concept_map_data)
        assert isinstance(diagram, ConceptMap)
        assert diagram.get_node("p").type == ConceptKind.PRINCIPAL
        assert diagram.get_node("missing") is None

    def test_connections_accept_from_to(self, concept_map_data):
        diagram = parse_diagram(concept_map_data)
        assert diagram.connections[0].source == "p"
        assert diagram.connections[0].target == "k1"
        assert diagram.to_json_dict()["connections"][0] == {"from": "p", "to": "k1"}

    def test_connection_keeps_explicit_source(self):
        conn = Connection.model_validate({"source": "a", "target": "b"})
        assert (conn.source, conn.target) == ("a", "b")

    def test_mind_map_has_implicit_connections(self, mind_map_data):
        diagram = parse_diagram(mind_map_data)
        assert isinstance(diagram, MindMap)
        assert [(c.source, c.target) for c in diagram.connections] == [
            (CENTRAL_NODE_ID, "b1"), (CENTRAL_NODE_ID, "b2"), (CENTRAL_NODE_ID, "b3"),
        ]
        assert diagram.get_branch("b1").children == ["Sun heats water", "Vapour rises"]

    def test_flowchart_guessed_from_node_kinds(self, flowchart_data):
        del flowchart_data["type"]
        diagram = parse_diagram(flowchart_data)
        assert isinstance(diagram, Flowchart)
        assert diagram.get_node("A").type == FlowKind.PROCESS

    def test_explicit_type_overrides_tag(self, concept_map_data):
        concept_map_data["nodes"] = [{"id": "x", "label": "X", "type": "process"}]
        concept_map_data["connections"] = []
        diagram = parse_diagram(concept_map_data, "flowchart-data")
        assert isinstance(diagram, Flowchart)

    def test_branches_guess_mind_map(self):
        diagram = parse_diagram({"title": "T", "branches": []})
        assert isinstance(diagram, MindMap)

    @pytest.mark.parametrize("payload", [
        [],
        "not a diagram",
        {"title": "no shape"},
        {"type": "venn-diagram", "nodes": []},
    ])
    def test_rejects_unrecognised_payloads(self, payload):
        with pytest.raises(DiagramFormatError):
            parse_diagram(payload)

    def test_rejects_bad_node_kind(self, concept_map_data):
        concept_map_data["nodes"][0]["type"] = "hexagon"
        with pytest.raises(DiagramFormatError, match="concept-map-data"):
            parse_diagram(concept_map_data)

    @pytest.mark.parametrize("length", ["auto", "1em", ""])
    def test_rejects_unplaceable_positions(self, flowchart_data, length):
        flowchart_data["nodes"][1]["position"]["top"] = length
        with pytest.raises(DiagramFormatError, match="flowchart-data"):
            parse_diagram(flowchart_data)

    def test_accepts_css_lengths(self, mind_map_data):
        mind_map_data["branches"][0]["position"] = {"top": "12.5%", "left": "40px"}
        diagram = parse_diagram(mind_map_data)
        assert diagram.branches[0].position.top == "12.5%"

    @pytest.mark.parametrize("static_type", ["venn-diagram-data", "comparison-table-data", "timeline-data"])
    def test_static_content_types_are_not_diagrams(self, static_type):
        with pytest.raises(DiagramFormatError, match="static view"):
            parse_diagram({"title": "T", "nodes": [], "connections": []}, static_type)


class TestValidation:
    """Structural checks reported to the generation side"""

    def test_clean_concept_map(self, concept_map_data):
        issues = validate_diagram(parse_diagram(concept_map_data))
        assert issues == []
        assert validation_summary(issues)["valid"] is True

    def test_dangling_connection_is_error(self, concept_map_data):
        concept_map_data["connections"].append({"from": "c1", "to": "ghost"})
        issues = validate_diagram(parse_diagram(concept_map_data))
        errors = [i for i in issues if i.severity == IssueSeverity.ERROR]
        assert len(errors) == 1
        assert errors[0].connection_index == 2
        assert "ghost" in errors[0].message
        assert validation_summary(issues)["valid"] is False

    def test_duplicate_connection_is_info(self, concept_map_data):
        concept_map_data["connections"].append({"from": "p", "to": "k1"})
        issues = validate_diagram(parse_diagram(concept_map_data))
        assert [i.severity for i in issues] == [IssueSeverity.INFO]

    def test_duplicate_node_ids(self, concept_map_data):
        concept_map_data["nodes"].append({"id": "p", "label": "Again"})
        issues = validate_diagram(parse_diagram(concept_map_data))
        assert any(i.severity == IssueSeverity.ERROR and i.node_id == "p" for i in issues)

    def test_orphan_and_self_reference(self):
        diagram = parse_diagram({
            "type": "concept-map-data",
            "nodes": [{"id": "a", "label": "A"}, {"id": "b", "label": "B"}],
            "connections": [{"from": "a", "to": "a"}],
        })
        issues = validate_diagram(diagram)
        assert any("(b)" in i.message and i.severity == IssueSeverity.WARNING for i in issues)
        assert any(i.connection_index == 0 and i.severity == IssueSeverity.WARNING for i in issues)

    def test_mind_map_without_branches(self):
        issues = validate_diagram(parse_diagram({"type": "mind-map-data", "title": "Alone"}))
        assert issues
        assert all(i.severity == IssueSeverity.INFO for i in issues)

    def test_issue_to_dict(self, concept_map_data):
        concept_map_data["nodes"][1]["label"] = ""
        issues = validate_diagram(parse_diagram(concept_map_data))
        assert issues[0].to_dict() == {
            "type": "warning",
            "message": issues[0].message,
            "node_id": "c1",
        }
