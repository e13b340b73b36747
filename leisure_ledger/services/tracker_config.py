"""Validated read/write access to the economy config"""

from dataclasses import replace

from leisure_ledger.domain.models import TrackerConfig
from leisure_ledger.domain.validation import validate_config
from leisure_ledger.infrastructure.database.repositories import StateRepository


class ConfigStore:
    def __init__(self, state_repo: StateRepository):
        self.state_repo = state_repo

    def get(self) -> TrackerConfig:
        return self.state_repo.load().config

    def update(self, **changes: float) -> TrackerConfig:
        """
        Apply a partial update.

        Raises:
            InvalidConfigError: the stored config is left as it was
        """
        state = self.state_repo.load()
        candidate = validate_config(replace(state.config, **changes))
        state.config = candidate
        self.state_repo.save(state)
        return candidate

    def reset(self) -> TrackerConfig:
        state = self.state_repo.load()
        state.config = TrackerConfig()
        self.state_repo.save(state)
        return state.config
