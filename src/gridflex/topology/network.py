"""
Congestion Topology
===================

Owns every node of the congestion tree in one id-indexed table:

    Congestion Point → [Congestion Point → ...] → Participants

Edges are child-id lists on the congestion points, so a participant
shared by several ancestor points is a single object with a single owner.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Mapping, Optional, Union
import logging

from ..config import (
    CongestionPointSpec,
    MeasurementSet,
    ParticipantSpec,
    TopologySpec,
    is_congestion_point_config,
)
from ..exceptions import DuplicateNodeError
from ..kinds import NodeKind
from ..resources.participant import Participant
from .congestion_point import CongestionPoint

logger = logging.getLogger(__name__)

Node = Union[CongestionPoint, Participant]


@dataclass
class GridTopology:
    """
    Id-indexed node table for a congestion topology.

    Attributes:
        name: Topology identifier
        nodes: All nodes by id (congestion points and participants share one namespace)
        roots: Ids of the top-level congestion points, in declaration order
    """
    name: str = "topology"
    nodes: Dict[str, Node] = field(default_factory=dict)
    roots: List[str] = field(default_factory=list)

    def __contains__(self, node_id: str) -> bool:
        return node_id in self.nodes

    def __len__(self) -> int:
        return len(self.nodes)

    def register(self, node: Node) -> Node:
        """
        Add a node to the table.

        Raises:
            DuplicateNodeError: if the id is already taken
        """
        if node.id in self.nodes:
            raise DuplicateNodeError(node.id)
        self.nodes[node.id] = node
        return node

    def add_root(self, cp: CongestionPoint) -> CongestionPoint:
        """Register a top-level congestion point."""
        self.register(cp)
        self.roots.append(cp.id)
        return cp

    def add_child(self, parent_id: str, node: Node) -> Node:
        """Register a node and attach it under a congestion point."""
        parent = self.get_congestion_point(parent_id)
        self.register(node)
        parent.add_child(node.id)
        return node

    def get(self, node_id: str) -> Node:
        return self.nodes[node_id]

    def get_congestion_point(self, node_id: str) -> CongestionPoint:
        node = self.nodes[node_id]
        if node.kind != NodeKind.CONGESTION_POINT:
            raise KeyError(f"{node_id} is not a congestion point")
        return node

    def get_participant(self, node_id: str) -> Participant:
        node = self.nodes[node_id]
        if node.kind != NodeKind.PARTICIPANT:
            raise KeyError(f"{node_id} is not a participant")
        return node

    def congestion_points(self) -> List[CongestionPoint]:
        """All congestion points, sorted by id."""
        return sorted(
            (n for n in self.nodes.values() if n.kind == NodeKind.CONGESTION_POINT),
            key=lambda n: n.id,
        )

    def participants(self) -> List[Participant]:
        """All participants, sorted by id."""
        return sorted(
            (n for n in self.nodes.values() if n.kind == NodeKind.PARTICIPANT),
            key=lambda n: n.id,
        )

    def iter_participants_under(self, node_id: str) -> Iterator[Participant]:
        node = self.nodes[node_id]
        if node.kind == NodeKind.PARTICIPANT:
            yield node
            return
        for child_id in node.children:
            yield from self.iter_participants_under(child_id)

    def participants_under(self, cp: CongestionPoint) -> List[Participant]:
        """
        Collect every participant below a congestion point.

        Walks depth-first through nested congestion points in child order.

        Args:
            cp: Congestion point to start from

        Returns:
            Participants subject to this congestion point
        """
        return list(self.iter_participants_under(cp.id))

    def apply_measurements(self, measurements: MeasurementSet) -> None:
        """
        Write one cycle's measurements into the node table.

        Entries for unknown ids, or ids of the wrong node kind, are ignored.
        """
        for cp_id, value in measurements.congestion_points.items():
            node = self.nodes.get(cp_id)
            if node is None or node.kind != NodeKind.CONGESTION_POINT:
                logger.debug("Ignoring congestion point measurement for %s", cp_id)
                continue
            node.measurement = value

        for participant_id, value in measurements.participants.items():
            node = self.nodes.get(participant_id)
            if node is None or node.kind != NodeKind.PARTICIPANT:
                logger.debug("Ignoring participant measurement for %s", participant_id)
                continue
            node.measurement = value

    def get_topology_summary(self) -> dict:
        """
        Generate a summary of the topology for display.

        Returns:
            Dict with node counts and the nested tree
        """
        def _tree(node_id: str) -> dict:
            node = self.nodes[node_id]
            if node.kind == NodeKind.PARTICIPANT:
                return {
                    "id": node.id,
                    "kind": node.kind.value,
                    "base": node.base,
                    "flex_contract": node.flex_contract,
                    "release_delay_cycles": node.release_delay_cycles,
                }
            return {
                "id": node.id,
                "kind": node.kind.value,
                "level": node.level,
                "upper_limit": node.upper_limit,
                "release_limit": node.release_limit,
                "children": [_tree(child_id) for child_id in node.children],
            }

        return {
            "name": self.name,
            "congestion_points": len(self.congestion_points()),
            "participants": len(self.participants()),
            "total_flex_contract": sum(p.flex_contract for p in self.participants()),
            "tree": [_tree(root_id) for root_id in self.roots],
        }

    @classmethod
    def from_config(cls, data: Union[TopologySpec, Mapping[str, Any]]) -> "GridTopology":
        """Build a topology from a TopologySpec or its raw mapping."""
        spec = data if isinstance(data, TopologySpec) else TopologySpec.model_validate(data)
        return build_topology(spec)


def _build_node(
    topology: GridTopology,
    node_config: Mapping[str, Any],
    parent_id: Optional[str],
) -> Node:
    if is_congestion_point_config(node_config):
        spec = CongestionPointSpec.model_validate(node_config)
        cp = CongestionPoint(
            id=spec.id,
            level=spec.level,
            upper_limit=spec.upper_limit,
            release_limit=spec.release_limit,
        )
        if parent_id is None:
            topology.add_root(cp)
        else:
            topology.add_child(parent_id, cp)
        for child in spec.children:
            _build_node(topology, child, cp.id)
        return cp

    if parent_id is None:
        raise ValueError(f"Participant {node_config.get('id')} must sit under a congestion point")
    spec = ParticipantSpec.model_validate(node_config)
    participant = Participant(
        id=spec.id,
        base=spec.base,
        flex_contract=spec.flex,
        release_delay_cycles=spec.release_delay_cycles,
    )
    return topology.add_child(parent_id, participant)


def build_topology(spec: TopologySpec) -> GridTopology:
    """
    Build the node table from a topology description.

    The build is all-or-nothing: a duplicate id anywhere in the tree
    rejects the whole topology.

    Args:
        spec: Validated topology description

    Returns:
        Populated GridTopology

    Raises:
        DuplicateNodeError: if two nodes share an id
    """
    topology = GridTopology(name=spec.name)
    for root in spec.congestion_points:
        _build_node(topology, root, None)

    logger.info(
        "Built topology %s: %d congestion points, %d participants",
        topology.name,
        len(topology.congestion_points()),
        len(topology.participants()),
    )
    return topology


def create_single_point_topology(
    cp_id: str,
    upper_limit: float,
    release_limit: float,
    participants: List[Participant],
    name: str = "single",
) -> GridTopology:
    """
    Create a one-point topology with participants directly below it.

    Args:
        cp_id: Congestion point id
        upper_limit: Switching threshold
        release_limit: Release threshold
        participants: Participants to attach
        name: Topology name

    Returns:
        Configured GridTopology
    """
    topology = GridTopology(name=name)
    topology.add_root(
        CongestionPoint(id=cp_id, level=0, upper_limit=upper_limit, release_limit=release_limit)
    )
    for participant in participants:
        topology.add_child(cp_id, participant)
    return topology
