"""
Resource Models
===============

Consumers that hold contracted flexible capacity:
- Participant: base level, flex contract, setpoint and restriction bookkeeping
"""

from .participant import Participant

__all__ = ["Participant"]
