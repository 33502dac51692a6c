from love_everyday.models.alert import ClearAlertResult, CriticalTransition
from love_everyday.models.update import MonitorUpdate

__all__ = ["ClearAlertResult", "CriticalTransition", "MonitorUpdate"]
