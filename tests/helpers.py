from gridflex.resources.participant import Participant
from gridflex.topology.network import create_single_point_topology


def single_point(upper_limit, release_limit, *participants, cp_id="CP"):
    """One congestion point with the given participants directly below it."""
    topology = create_single_point_topology(cp_id, upper_limit, release_limit, list(participants))
    return topology, topology.get_congestion_point(cp_id)


def pre_restrict(p: Participant, cp_id: str, last_intervention_at=None) -> None:
    """Put a participant in the restricted-by-cp_id state with an elapsed delay."""
    p.add_restriction(cp_id)
    p.release_countdown_by_cp[cp_id] = 0
    p.last_intervention_at = last_intervention_at
