"""Central registry for Prometheus metrics used across the client engine."""

from __future__ import annotations

from prometheus_client import Counter, Histogram

ACTIONS_TOTAL = Counter(
	"ttrpg_client_actions_total",
	"Orchestrated remote actions by outcome",
	["action", "outcome"],
)

ACTION_LATENCY = Histogram(
	"ttrpg_client_action_duration_seconds",
	"Latency of orchestrated remote actions in seconds",
	["action"],
	buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0, 10.0),
)

STALE_RESPONSES = Counter(
	"ttrpg_client_stale_responses_total",
	"Responses discarded because their target entity is no longer focused",
	["entity"],
)

TRANSITION_REJECTS = Counter(
	"ttrpg_client_transition_rejects_total",
	"Lifecycle actions rejected locally before reaching the server",
	["machine", "reason"],
)


def observe_action(action: str, outcome: str, elapsed_seconds: float) -> None:
	ACTIONS_TOTAL.labels(action=action, outcome=outcome).inc()
	ACTION_LATENCY.labels(action=action).observe(elapsed_seconds)


def inc_action_duplicate(action: str) -> None:
	ACTIONS_TOTAL.labels(action=action, outcome="duplicate").inc()


def inc_stale_response(entity: str) -> None:
	STALE_RESPONSES.labels(entity=entity).inc()


def inc_transition_reject(machine: str, reason: str) -> None:
	TRANSITION_REJECTS.labels(machine=machine, reason=reason).inc()
