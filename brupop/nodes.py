"""Recognising cluster nodes that carry the update operator's interface label."""

from __future__ import annotations

from typing import Iterable, Mapping

__all__ = [
    "LABEL_BRUPOP_INTERFACE_NAME",
    "BRUPOP_INTERFACE_VERSION",
    "node_has_label",
    "find_unlabeled_nodes",
]

LABEL_BRUPOP_INTERFACE_NAME = "bottlerocket.aws/updater-interface-version"
BRUPOP_INTERFACE_VERSION = "2.0.0"


def node_has_label(labels: Mapping[str, str] | None) -> bool:
    """Whether the node labels name the supported update interface version."""
    if not labels:
        return False
    return labels.get(LABEL_BRUPOP_INTERFACE_NAME) == BRUPOP_INTERFACE_VERSION


def find_unlabeled_nodes(
    nodes: Iterable[tuple[str, Mapping[str, str] | None]],
) -> list[str]:
    """Names of the nodes, given as ``(name, labels)`` pairs, lacking the interface label."""
    return [name for name, labels in nodes if not node_has_label(labels)]