"""
Value types, validation and errors shared by the prompt engine and its runtime.
"""

from .config_schema import load_and_validate_config, parse_feature_config  # noqa: F401
from .errors import (  # noqa: F401
    ConfigValidationError,
    InvalidTransitionError,
    PromptEngineError,
    PromptStorageError,
)
from .models import (  # noqa: F401
    FeatureConfig,
    PromptDecision,
    PromptHistory,
    PromptOutcome,
    SuppressionReason,
    UserActivity,
    UserType,
    Variant,
)
