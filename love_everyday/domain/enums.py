"""Controlled enumerations for the love-everyday domain.

Every categorical field in the domain MUST reference an enum defined here.
Free-form strings are not acceptable for classification fields.
"""

from __future__ import annotations

from enum import Enum


class SafetyLevel(str, Enum):
    """Tri-state classification of a parent's inactivity."""

    SAFE = "safe"
    WARNING = "warning"
    CRITICAL = "critical"


class ActivitySource(str, Enum):
    """Which family-document field supplied the last activity timestamp."""

    PHONE = "phone"
    APP = "app"
    MEAL = "meal"
    LOCATION = "location"


class MonitorState(str, Enum):
    """Lifecycle states of a StatusMonitor."""

    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    READY = "ready"
    ERROR = "error"
    STOPPED = "stopped"
