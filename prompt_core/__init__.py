"""
Default browser prompt engine: activity tracking, eligibility and coordination.
"""

from .activity_tracker import ActivityTracker  # noqa: F401
from .coordinator import CoordinatorState, PromptCoordinator  # noqa: F401
from .decider import DecisionInputs, PromptEligibilityDecider, decide  # noqa: F401
from .default_status import DefaultStatusCache  # noqa: F401
from .events import PromptEvent, PromptEventName  # noqa: F401
from .memory_store import InMemoryPromptStore  # noqa: F401
