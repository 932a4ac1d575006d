"""
statecore Runtime - Dependency Tracking, Batching, Scheduling and Ownership
===========================================================================
"""

from .arena import StateArena, StateHandle
from .dependencies import Dependencies
from .reactive_runtime import BatchScope, Flushable, ReactiveRuntime
from .scheduler import ManualScheduler, Scheduler, TimerHandle, TimerScheduler

__all__ = [
    "BatchScope",
    "Dependencies",
    "Flushable",
    "ManualScheduler",
    "ReactiveRuntime",
    "Scheduler",
    "StateArena",
    "StateHandle",
    "TimerHandle",
    "TimerScheduler",
]
