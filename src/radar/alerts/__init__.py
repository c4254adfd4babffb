"""Alert throttling: cooldown gate, active-signal registry, and payload formatting."""

from radar.alerts.formatter import format_alert
from radar.alerts.gate import AlertGate
from radar.alerts.models import ActiveSignal, GateAction, GateDecision, GateState, SuppressReason

__all__ = [
    "ActiveSignal",
    "AlertGate",
    "GateAction",
    "GateDecision",
    "GateState",
    "SuppressReason",
    "format_alert",
]
