from __future__ import annotations

import json
import math
import os
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from pydantic import AliasChoices, BaseModel, Field, confloat, field_validator, model_validator

DEFAULT_EVENTS_HOST = "127.0.0.1"
DEFAULT_EVENTS_PORT = 41234

ENV_EVENTS_DISABLED = "GRIDFLEX_EVENTS_UDP_DISABLED"
ENV_EVENTS_HOST = "GRIDFLEX_EVENTS_HOST"
ENV_EVENTS_PORT = "GRIDFLEX_EVENTS_PORT"


def is_congestion_point_config(node: Mapping[str, Any]) -> bool:
    """A node description carrying an upper limit describes a congestion point."""
    return "upper_limit" in node


class CongestionPointSpec(BaseModel):
    id: str = Field(..., min_length=1, description="Node id, unique across the topology.")
    level: int = Field(0, description="Depth in the topology (informational).")
    upper_limit: float = Field(..., description="Switching threshold: congestion above this level.")
    release_limit: float = Field(..., description="Release threshold: congestion exits below this level.")
    children: List[Dict[str, Any]] = Field(
        default_factory=list,
        description="Nested congestion point or participant descriptions.",
    )

    @model_validator(mode="after")
    def _dead_band(self) -> "CongestionPointSpec":
        if not self.release_limit < self.upper_limit:
            raise ValueError("release_limit must be below upper_limit")
        return self


class ParticipantSpec(BaseModel):
    id: str = Field(..., min_length=1, description="Node id, unique across the topology.")
    base: confloat(ge=0) = Field(..., description="Guaranteed non-flexible level.")
    flex: confloat(ge=0) = Field(..., description="Contracted flexible capacity above base.")
    release_delay_cycles: int = Field(
        1,
        validation_alias=AliasChoices(
            "release_delay_cycles",
            "release_after_cycles",
            "releaseAfterCycles",
            "releaseAfterCyclus",
            "vrijgaveNaCycli",
        ),
        description="Cycles a restriction must last before it may be released (>= 1).",
    )

    @field_validator("release_delay_cycles", mode="before")
    @classmethod
    def _floor_delay(cls, v: Any) -> int:
        if v is None:
            return 1
        try:
            v = float(v)
        except (TypeError, ValueError):
            raise ValueError("release_delay_cycles must be a number")
        if not math.isfinite(v):
            raise ValueError("release_delay_cycles must be finite")
        return max(1, int(math.trunc(v)))


class TopologySpec(BaseModel):
    name: str = Field("topology", description="Topology name.")
    congestion_points: List[Dict[str, Any]] = Field(
        ..., description="Root congestion point descriptions."
    )


class MeasurementSet(BaseModel):
    congestion_points: Dict[str, float] = Field(
        default_factory=dict, description="Measured load per congestion point id."
    )
    participants: Dict[str, float] = Field(
        default_factory=dict, description="Measured consumption per participant id."
    )


class EventTransportSettings(BaseModel):
    enabled: bool = Field(True, description="Broadcast setpoint changes over UDP.")
    host: str = Field(DEFAULT_EVENTS_HOST, description="UDP destination host.")
    port: int = Field(DEFAULT_EVENTS_PORT, ge=1, le=65535, description="UDP destination port.")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "EventTransportSettings":
        env = os.environ if environ is None else environ
        raw_port = env.get(ENV_EVENTS_PORT)
        try:
            port = int(raw_port) if raw_port else DEFAULT_EVENTS_PORT
        except ValueError:
            port = DEFAULT_EVENTS_PORT
        if not (1 <= port <= 65535):
            port = DEFAULT_EVENTS_PORT
        return cls(
            enabled=env.get(ENV_EVENTS_DISABLED) != "1",
            host=env.get(ENV_EVENTS_HOST) or DEFAULT_EVENTS_HOST,
            port=port,
        )


def _read_json(path: str | Path) -> Any:
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Input JSON not found: {path}")
    return json.loads(p.read_text(encoding="utf-8"))


def load_topology_file(path: str | Path) -> TopologySpec:
    return TopologySpec.model_validate(_read_json(path))


def load_measurements_file(path: str | Path) -> MeasurementSet:
    return MeasurementSet.model_validate(_read_json(path))
