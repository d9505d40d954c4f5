"""Mutable state shared by every deduction rule and the search."""

from __future__ import annotations

from dataclasses import dataclass, field

from ..core.models import SolveStats
from .constraints import ConstraintSnapshot, LineConstraints
from .fleet import Fleet, FleetSnapshot
from .grid import GridSnapshot, ShipGrid


@dataclass
class ContextSnapshot:
    cells: GridSnapshot
    satisfied: ConstraintSnapshot
    fleet: FleetSnapshot


@dataclass
class SolverContext:
    """Everything one solve attempt mutates, owned by a single solver."""

    grid: ShipGrid
    constraints: LineConstraints
    fleet: Fleet
    stats: SolveStats = field(default_factory=SolveStats)

    def snapshot(self) -> ContextSnapshot:
        return ContextSnapshot(
            cells=self.grid.snapshot(),
            satisfied=self.constraints.snapshot(),
            fleet=self.fleet.snapshot(),
        )

    def restore(self, snapshot: ContextSnapshot) -> None:
        self.grid.restore(snapshot.cells)
        self.constraints.restore(snapshot.satisfied)
        self.fleet.restore(snapshot.fleet)
