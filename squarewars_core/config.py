from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_GRID_SIZE = 10
DEFAULT_TARGET_SCORE = 100
DEFAULT_DB = os.path.join("data", "squarewars.db")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == '':
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f'{name} must be an integer, got {raw!r}') from None


@dataclass(frozen=True)
class GameConfig:
    grid_size: int = DEFAULT_GRID_SIZE
    target_score: int = DEFAULT_TARGET_SCORE
    db_path: str = DEFAULT_DB

    def __post_init__(self) -> None:
        if self.grid_size < 2:
            raise ValueError(f'grid_size must be at least 2, got {self.grid_size}')
        if self.target_score <= 0:
            raise ValueError(f'target_score must be positive, got {self.target_score}')

    @classmethod
    def from_env(cls) -> 'GameConfig':
        """Reads SQUAREWARS_GRID_SIZE, SQUAREWARS_TARGET_SCORE and SQUAREWARS_DB."""
        return cls(
            grid_size=_env_int("SQUAREWARS_GRID_SIZE", DEFAULT_GRID_SIZE),
            target_score=_env_int("SQUAREWARS_TARGET_SCORE", DEFAULT_TARGET_SCORE),
            db_path=os.getenv("SQUAREWARS_DB") or DEFAULT_DB,
        )
