"""Config bounds checking"""

from leisure_ledger.domain.exceptions import InvalidConfigError
from leisure_ledger.domain.models import TrackerConfig

LEISURE_FACTOR_RANGE = (0.1, 1.0)
INTEREST_RATE_RANGE = (0.0, 0.5)
MAX_DEBT_LIMIT_RANGE = (0.0, 180.0)


def validate_config(config: TrackerConfig) -> TrackerConfig:
    """
    Check every config field against its allowed range.

    Raises:
        InvalidConfigError: naming the first field that is out of range
    """
    low, high = LEISURE_FACTOR_RANGE
    if not low <= config.leisure_factor <= high:
        raise InvalidConfigError(f"leisure_factor must be between {low} and {high}")

    low, high = INTEREST_RATE_RANGE
    if not low <= config.loan_interest_rate <= high:
        raise InvalidConfigError(f"loan_interest_rate must be between {low} and {high}")

    low, high = MAX_DEBT_LIMIT_RANGE
    if not low <= config.max_debt_limit <= high:
        raise InvalidConfigError(f"max_debt_limit must be between {low:g} and {high:g}")

    return config
