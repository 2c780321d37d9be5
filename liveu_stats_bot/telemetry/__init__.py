"""Telemetry store and the monitors that keep it current."""

from .battery import BatteryMonitor, BatteryTransition, crossed_thresholds, detect_transitions
from .external import ExternalBitrateMonitor
from .modems import ModemMonitor, build_modems_message, diff_ports
from .polling import IntervalPoller
from .store import TelemetrySnapshot, TelemetryStore

__all__ = [
    "BatteryMonitor",
    "BatteryTransition",
    "ExternalBitrateMonitor",
    "IntervalPoller",
    "ModemMonitor",
    "TelemetrySnapshot",
    "TelemetryStore",
    "build_modems_message",
    "crossed_thresholds",
    "detect_transitions",
    "diff_ports",
]
