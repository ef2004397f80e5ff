"""
Errors
======

Exceptions raised while building a grid topology.
"""


class TopologyError(ValueError):
    """Invalid topology description."""


class DuplicateNodeError(TopologyError):
    """Raised when two nodes in one topology share an id."""

    def __init__(self, node_id: str):
        super().__init__(f"Duplicate topology node id: {node_id}")
        self.node_id = node_id
