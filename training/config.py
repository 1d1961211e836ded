#!/usr/bin/env python3
"""
config.py - DQN Training Configuration Presets

Pre-configured training setups:
- quick_test: a few hundred games, for smoke runs and debugging
- tic_tac_two: the multi-mark variant (cell_width=3)
- tic_tac_toe: classic tic-tac-toe (cell_width=1), no double moves
"""
import math
import random
import time
from dataclasses import asdict, dataclass, field
from typing import Optional, Tuple

import numpy as np
import torch

from core.errors import ConfigurationError
from core.game import GameConfig

# ════════════════════════════════════════════════════════════════════
# CONFIGURATION PRESETS
# ════════════════════════════════════════════════════════════════════

CONFIGS = {
    'quick_test': {
        'CELL_WIDTH': 3,
        'ALLOW_DOUBLE_MOVES': True,
        'REPLAY_MEMORY_CAPACITY': 500,
        'BATCH_SIZE': 64,
        'NUM_GAMES': 400,
        'EPSILON_START': 0.95,
        'MIN_EPSILON': 0.01,
        'UPDATE_EVERY': 20,
        'SAVE_MODEL_EVERY': 100,
        'HIDDEN_SIZES': (128, 64),
        'description': 'Fast smoke-test configuration (minutes on CPU)'
    },

    'tic_tac_two': {
        'CELL_WIDTH': 3,
        'ALLOW_DOUBLE_MOVES': True,
        'REPLAY_MEMORY_CAPACITY': 8000,
        'BATCH_SIZE': 256,
        'NUM_GAMES': 20000,
        'EPSILON_START': 0.95,
        'MIN_EPSILON': 0.01,
        'UPDATE_EVERY': 200,
        'SAVE_MODEL_EVERY': 1000,
        'HIDDEN_SIZES': (512, 512),
        'description': 'Tic-tac-two against a random opponent'
    },

    'tic_tac_toe': {
        'CELL_WIDTH': 1,
        'ALLOW_DOUBLE_MOVES': False,
        'REPLAY_MEMORY_CAPACITY': 8000,
        'BATCH_SIZE': 512,
        'NUM_GAMES': 30000,
        'EPSILON_START': 0.95,
        'MIN_EPSILON': 0.01,
        'UPDATE_EVERY': 200,
        'SAVE_MODEL_EVERY': 1000,
        'HIDDEN_SIZES': (128, 64),
        'description': 'Classic tic-tac-toe against a random opponent'
    },
}

# Share of the epsilon epochs spent at min_epsilon at the end of a run
EPOCHS_AT_MIN_EPSILON_FRACTION = 0.33


def derive_epsilon_decay(num_games: int, update_every: int, epsilon_start: float, min_epsilon: float) -> float:
    """
    Linear decay per target sync so epsilon reaches min_epsilon with a third
    of the run to spare.

    An "epoch" is the block of update_every games played at one epsilon.
    """
    epochs_total = num_games // update_every
    epochs_at_min = math.ceil(EPOCHS_AT_MIN_EPSILON_FRACTION * epochs_total)
    epsilon_updates = epochs_total - epochs_at_min
    if epsilon_updates <= 0:
        # Too few epochs to decay gradually: drop to the floor on the first sync
        return epsilon_start - min_epsilon
    return (epsilon_start - min_epsilon) / epsilon_updates


def set_seed(seed: int):
    random.seed(seed)
    np.random.seed(seed)
    torch.manual_seed(seed)


@dataclass(frozen=True)
class RewardConfig:
    large_positive: float = 20.0
    large_negative: float = -10.0
    very_large_negative: float = -30.0
    small_negative: float = -0.05
    opponent_disqualified: float = 0.0
    tie: Optional[float] = None

    @property
    def tie_reward(self) -> float:
        return self.small_negative if self.tie is None else self.tie


@dataclass(frozen=True)
class TrainingConfig:
    """Everything a training run needs; validated on construction."""
    cell_width: int = 3
    allow_double_moves: bool = True
    randomize_order: bool = True
    randomize_symbol: bool = True

    replay_memory_capacity: int = 8000
    batch_size: int = 256
    num_games: int = 20000

    epsilon_start: float = 0.95
    min_epsilon: float = 0.01
    epsilon_decay: Optional[float] = None
    update_every: int = 200
    save_model_every: int = 1000

    hidden_sizes: Tuple[int, ...] = (512, 512)
    learning_rate: float = 1e-3
    gamma: float = 0.90
    gradient_clip: Optional[float] = None
    encoder_cache_size: Optional[int] = 50_000

    opponent: str = 'random'
    opponent_double_move_prob: float = 0.25
    reward_window: int = 100

    save_dir: str = 'models'
    log_dir: str = 'logs'
    seed: Optional[int] = None
    device: str = 'cpu'
    rewards: RewardConfig = field(default_factory=RewardConfig)

    def __post_init__(self):
        if self.replay_memory_capacity <= 0:
            raise ConfigurationError(f"replay_memory_capacity must be > 0, got {self.replay_memory_capacity}")
        if self.batch_size <= 0 or self.batch_size > self.replay_memory_capacity:
            raise ConfigurationError(
                f"batch_size must be in [1, {self.replay_memory_capacity}], got {self.batch_size}"
            )
        if self.num_games < 0:
            raise ConfigurationError(f"num_games must be >= 0, got {self.num_games}")
        if not 0.0 <= self.min_epsilon <= self.epsilon_start <= 1.0:
            raise ConfigurationError(
                f"Expected 0 <= min_epsilon <= epsilon_start <= 1, got {self.min_epsilon} / {self.epsilon_start}"
            )
        if self.update_every < 1 or self.save_model_every < 1:
            raise ConfigurationError("update_every and save_model_every must be >= 1")
        if self.reward_window < 1:
            raise ConfigurationError(f"reward_window must be >= 1, got {self.reward_window}")
        if self.opponent not in ('random', 'heuristic'):
            raise ConfigurationError(f"Unknown opponent: {self.opponent!r}")
        if self.cell_width < 1:
            raise ConfigurationError(f"cell_width must be >= 1, got {self.cell_width}")

    @property
    def resolved_epsilon_decay(self) -> float:
        if self.epsilon_decay is not None:
            return self.epsilon_decay
        return derive_epsilon_decay(self.num_games, self.update_every, self.epsilon_start, self.min_epsilon)

    def game_config(self) -> GameConfig:
        return GameConfig(
            cell_width=self.cell_width,
            randomize_order=self.randomize_order,
            randomize_symbol=self.randomize_symbol,
            allow_double_moves=self.allow_double_moves,
        )

    def run_id(self) -> str:
        """Folder-friendly run name carrying the main hyper-parameters."""
        stamp = time.strftime('%Y%m%d-%H%M%S')
        return (
            f"DQN-{stamp}-w{self.cell_width}-es{self.epsilon_start}-me{self.min_epsilon}"
            f"-ed{self.resolved_epsilon_decay:.3f}-ue{self.update_every}"
            f"-rmc{self.replay_memory_capacity}-b{self.batch_size}-n{self.num_games}"
        )

    def to_dict(self) -> dict:
        data = asdict(self)
        data['epsilon_decay'] = self.resolved_epsilon_decay
        return data

    @classmethod
    def from_preset(cls, name: str, **overrides) -> "TrainingConfig":
        if name not in CONFIGS:
            raise ConfigurationError(f"Unknown preset {name!r}. Available: {', '.join(CONFIGS)}")
        preset = CONFIGS[name]
        values = dict(
            cell_width=preset['CELL_WIDTH'],
            allow_double_moves=preset['ALLOW_DOUBLE_MOVES'],
            replay_memory_capacity=preset['REPLAY_MEMORY_CAPACITY'],
            batch_size=preset['BATCH_SIZE'],
            num_games=preset['NUM_GAMES'],
            epsilon_start=preset['EPSILON_START'],
            min_epsilon=preset['MIN_EPSILON'],
            update_every=preset['UPDATE_EVERY'],
            save_model_every=preset['SAVE_MODEL_EVERY'],
            hidden_sizes=tuple(preset['HIDDEN_SIZES']),
        )
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


def print_config(name: str):
    """Print configuration details."""
    if name not in CONFIGS:
        print(f"Unknown config: {name}")
        return

    config = CONFIGS[name]
    print(f"\n{'=' * 70}")
    print(f"Configuration: {name.upper()}")
    print(f"{'=' * 70}")
    print(f"Description: {config['description']}")
    print(f"{'-' * 70}")
    for key, value in config.items():
        if key != 'description':
            print(f"  {key:25s}: {value}")
    print(f"{'=' * 70}\n")
