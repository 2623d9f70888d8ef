"""Workflow simulation collaborator."""

from workflow_builder.simulation.simulator import MockSimulator, SimulationResult, Simulator, TraceStep

__all__ = ["MockSimulator", "SimulationResult", "Simulator", "TraceStep"]
