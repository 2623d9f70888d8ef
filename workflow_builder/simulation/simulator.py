"""
Simulation collaborator contract and the bundled mock simulator.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class TraceStep(BaseModel):
    """One executed step of a simulated run."""

    step: int = Field(..., ge=1)
    node_id: str
    node_type: str
    message: str


class SimulationResult(BaseModel):
    """Outcome of a simulation request."""

    success: bool
    trace: list[TraceStep] = Field(default_factory=list)
    error: Optional[str] = None


class Simulator(ABC):
    """Runs a workflow and reports a trace."""

    @abstractmethod
    async def simulate(self, workflow: dict[str, Any]) -> SimulationResult:
        """
        Simulate a workflow payload ({"nodes": [...], "edges": [...]}).

        Malformed payloads produce success=False rather than raising.
        """


class MockSimulator(Simulator):
    """
    Produces a trace in node-array order after a short artificial delay.
    """

    def __init__(self, delay: float = 0.4):
        self.delay = delay

    async def simulate(self, workflow: dict[str, Any]) -> SimulationResult:
        if self.delay:
            await asyncio.sleep(self.delay)

        if not isinstance(workflow, dict) or not isinstance(workflow.get("nodes"), list):
            return SimulationResult(success=False, error="Invalid workflow payload")

        trace: list[TraceStep] = []
        try:
            for index, node in enumerate(workflow["nodes"]):
                node_type = node.get("kind") or "unknown"
                data = node.get("data") or {}
                label = data.get("label") or node.get("id")
                trace.append(TraceStep(
                    step=index + 1,
                    node_id=str(node.get("id")),
                    node_type=node_type,
                    message=f"Executed {node.get('kind') or 'node'} ({label})",
                ))
        except (AttributeError, TypeError, ValueError) as e:
            logger.warning(f"Simulation failed on malformed node: {e}")
            return SimulationResult(success=False, error=str(e) or "Simulation failed")

        logger.info(f"Simulated workflow with {len(trace)} step(s)")
        return SimulationResult(success=True, trace=trace)
