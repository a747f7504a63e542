"""Builders package for joinpath-mcp.

This package contains builder classes responsible for constructing response
models from schema snapshots and join resolution results.

Main Components:
- TableDetailBuilder: Builds TableDetail objects
- DatabaseInfoBuilder: Builds DatabaseInfo objects
- SampleResultBuilder: Builds SampleResult objects
- JoinPlanResultBuilder: Builds JoinPlanResult and JoinPathInfo objects
"""

from .response_builders import (
    DatabaseInfoBuilder,
    JoinPlanResultBuilder,
    SampleResultBuilder,
    TableDetailBuilder,
    table_ref,
)

__all__ = [
    "DatabaseInfoBuilder",
    "JoinPlanResultBuilder",
    "SampleResultBuilder",
    "TableDetailBuilder",
    "table_ref",
]
