"""
Diagram validation - Check generated diagrams for structural issues.

Renderers never fail on these problems (a dangling connection is simply
not drawn), but the API and CLI report them so the generation side can be
corrected.
"""

from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from .models import CENTRAL_NODE_ID, MindMap

if TYPE_CHECKING:
    from .models import Diagram


class IssueSeverity(str, Enum):
    """Severity levels for validation issues."""
    ERROR = "error"      # Invalid state, must be fixed
    WARNING = "warning"  # Potential problem, should review
    INFO = "info"        # Informational, may be intentional


@dataclass
class ValidationIssue:
    """A single validation issue found in a diagram."""
    severity: IssueSeverity
    message: str
    node_id: str | None = None
    connection_index: int | None = None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        result = {
            "type": self.severity.value,
            "message": self.message
        }
        if self.node_id:
            result["node_id"] = self.node_id
        if self.connection_index is not None:
            result["connection_index"] = self.connection_index
        return result


def _node_entries(diagram: "Diagram") -> list[tuple[str, str]]:
    """(id, label) for every node, including the implicit mind map root."""
    if isinstance(diagram, MindMap):
        entries = [(CENTRAL_NODE_ID, diagram.title)]
        entries.extend((b.id, b.title) for b in diagram.branches)
        return entries
    return [(n.id, n.label) for n in diagram.nodes]


def validate_diagram(diagram: "Diagram") -> list[ValidationIssue]:
    """
    Validate a diagram and return a list of issues.

    Checks for:
    - Empty diagram - INFO
    - Duplicate node ids - ERROR
    - Missing labels - WARNING
    - Invalid connection references (from/to doesn't exist) - ERROR
    - Self-referencing connections - WARNING
    - Duplicate connections (same from->to) - INFO, they are drawn twice
    - Orphan nodes (no connections) - WARNING

    Args:
        diagram: The diagram to validate

    Returns:
        List of ValidationIssue objects
    """
    issues: list[ValidationIssue] = []

    entries = _node_entries(diagram)
    connections = diagram.connections

    if isinstance(diagram, MindMap):
        if not diagram.branches:
            issues.append(ValidationIssue(
                severity=IssueSeverity.INFO,
                message="Mind map has no branches"
            ))
            return issues
    elif not entries:
        issues.append(ValidationIssue(
            severity=IssueSeverity.INFO,
            message="Diagram has no nodes"
        ))
        return issues

    id_counts = Counter(node_id for node_id, _ in entries)
    for node_id, count in id_counts.items():
        if count > 1:
            issues.append(ValidationIssue(
                severity=IssueSeverity.ERROR,
                message=f"Node id used {count} times",
                node_id=node_id
            ))

    for node_id, label in entries:
        if not label or not label.strip():
            issues.append(ValidationIssue(
                severity=IssueSeverity.WARNING,
                message="Node has an empty label",
                node_id=node_id
            ))

    node_ids = set(id_counts)

    for index, conn in enumerate(connections):
        if conn.source not in node_ids:
            issues.append(ValidationIssue(
                severity=IssueSeverity.ERROR,
                message=f"Connection references non-existent source node: {conn.source}",
                connection_index=index
            ))
        if conn.target not in node_ids:
            issues.append(ValidationIssue(
                severity=IssueSeverity.ERROR,
                message=f"Connection references non-existent target node: {conn.target}",
                connection_index=index
            ))
        if conn.source == conn.target:
            issues.append(ValidationIssue(
                severity=IssueSeverity.WARNING,
                message="Self-referencing connection (node points to itself)",
                node_id=conn.source,
                connection_index=index
            ))

    seen_pairs: set[tuple[str, str]] = set()
    for index, conn in enumerate(connections):
        pair = (conn.source, conn.target)
        if pair in seen_pairs:
            issues.append(ValidationIssue(
                severity=IssueSeverity.INFO,
                message=f"Duplicate connection from {conn.source} to {conn.target} (drawn twice)",
                connection_index=index
            ))
        else:
            seen_pairs.add(pair)

    connected: set[str] = set()
    for conn in connections:
        connected.add(conn.source)
        connected.add(conn.target)

    orphans = [f"{label} ({node_id})" for node_id, label in entries if node_id not in connected]
    if orphans:
        issues.append(ValidationIssue(
            severity=IssueSeverity.WARNING,
            message=f"Orphan nodes (no connections): {', '.join(orphans)}"
        ))

    return issues


def validation_summary(issues: list[ValidationIssue]) -> dict:
    """
    Create a summary of validation issues.

    Args:
        issues: List of validation issues

    Returns:
        Dictionary with counts by severity
    """
    errors = len([i for i in issues if i.severity == IssueSeverity.ERROR])
    return {
        "total": len(issues),
        "errors": errors,
        "warnings": len([i for i in issues if i.severity == IssueSeverity.WARNING]),
        "info": len([i for i in issues if i.severity == IssueSeverity.INFO]),
        "valid": errors == 0
    }
