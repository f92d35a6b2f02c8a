"""Integration and access-gating engine for calgate."""

from calgate.engine.aggregator import aggregate_integrations, load_integrations, count_active
from calgate.engine.connection import (
    ConnectionController,
    CredentialGateway,
    MutationResult,
    RefreshIntegrations,
    compute_connection_state,
    primary_action,
)
from calgate.engine.gate import AccessGate, GateDecision, GateInputs, GateState, reduce_gate
from calgate.engine.onboarding import should_show_onboarding
from calgate.engine.query_cache import QueryCache, QueryStatus

__all__ = [
    "aggregate_integrations",
    "load_integrations",
    "count_active",
    "ConnectionController",
    "CredentialGateway",
    "MutationResult",
    "RefreshIntegrations",
    "compute_connection_state",
    "primary_action",
    "AccessGate",
    "GateDecision",
    "GateInputs",
    "GateState",
    "reduce_gate",
    "should_show_onboarding",
    "QueryCache",
    "QueryStatus",
]
