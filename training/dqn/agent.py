import random
from dataclasses import dataclass
from typing import Optional, Sequence, Union

import numpy as np
import torch

from agents.random_agent import RandomAgent
from core.action_manager import ActionManager
from core.board_encoder import TicTacTwoBoardEncoder
from core.errors import ConfigurationError
from core.rules import Move
from training.checkpoint import ModelCheckpointer
from .buffer import ReplayElement
from .model import DQNModel
from .trainer import DQNTrainer


@dataclass(frozen=True)
class TrainStepInfo:
    loss: float
    train_step_time: float
    epsilon: float
    target_updated: bool


class DQNAgent:
    """
    Epsilon-greedy agent backed by an online/target DQNModel.

    Exploration moves come from an internal RandomAgent that plays with the
    same symbol. Greedy moves are the argmax over all actions, legal or not:
    illegal picks get disqualified and learned away through the reward.
    """

    def __init__(
        self,
        symbol: str = 'x',
        name: str = 'dqn',
        cell_width: int = 3,
        allow_double_moves: bool = True,
        epsilon_start: float = 0.95,
        min_epsilon: float = 0.01,
        epsilon_decay: float = 0.01,
        update_target_every: int = 200,
        hidden_sizes: Sequence[int] = (512, 512),
        learning_rate: float = 1e-3,
        gamma: float = 0.90,
        gradient_clip: Optional[float] = None,
        encoder_cache_size: Optional[int] = 50_000,
        model_path: Optional[str] = None,
        device: Union[str, torch.device] = "cpu",
        rng: Optional[random.Random] = None,
    ):
        if not 0.0 <= min_epsilon <= epsilon_start <= 1.0:
            raise ConfigurationError(
                f"Expected 0 <= min_epsilon <= epsilon_start <= 1, got {min_epsilon} / {epsilon_start}"
            )
        if update_target_every < 1:
            raise ConfigurationError(f"update_target_every must be >= 1, got {update_target_every}")

        self.symbol = symbol
        self.name = name
        self.epsilon = epsilon_start
        self.min_epsilon = min_epsilon
        self.epsilon_decay = epsilon_decay
        self.update_target_every = update_target_every
        self.last_game_update = -1
        self.has_made_double_move = False
        self.model_path = model_path
        self.rng = rng or random.Random()

        self.action_manager = ActionManager(allow_double_moves=allow_double_moves, device=device)
        self.board_encoder = TicTacTwoBoardEncoder(cell_width=cell_width, cache_size=encoder_cache_size)
        self.model = DQNModel(
            input_dim=self.board_encoder.feature_size,
            action_dim=self.action_manager.action_dim,
            hidden_sizes=hidden_sizes,
            device=device,
        )
        self.trainer = DQNTrainer(
            self.model,
            self.action_manager,
            self.board_encoder,
            learning_rate=learning_rate,
            gamma=gamma,
            gradient_clip=gradient_clip,
        )

        self.random_mover = RandomAgent(
            symbol=symbol,
            name=f"{name}-explore",
            double_move_prob=0.25 if allow_double_moves else 0.0,
            rng=self.rng,
        )

    # ------------------------------------------------------------------
    # Agent contract
    # ------------------------------------------------------------------
    def init(self):
        if self.model_path:
            ModelCheckpointer().load(self.model, self.model_path)

    def start_game(self):
        self.has_made_double_move = False
        self.random_mover.start_game()
        self.random_mover.symbol = self.symbol

    def move(self, board: np.ndarray, opponent_has_made_double_move: bool = False) -> Move:
        if self.rng.random() < self.epsilon:
            move = self.random_mover.move(board, opponent_has_made_double_move)
            if move.is_double_move:
                self.has_made_double_move = True
            return move
        return self.get_predicted_action(board, self.symbol, self.has_made_double_move)

    # ------------------------------------------------------------------
    # Greedy policy
    # ------------------------------------------------------------------
    def get_predicted_action(self, board: np.ndarray, symbol: str, has_made_double_move: bool) -> Move:
        features = self.board_encoder.encode(board, symbol, has_made_double_move)
        with torch.no_grad():
            q_values = self.model.get_q_values(features)
        action_id = int(q_values.argmax(dim=-1)[0].item())

        move = self.action_manager.make_move(action_id, symbol)
        if move.is_double_move:
            self.has_made_double_move = True
            self.random_mover.has_made_double_move = True
        return move

    # ------------------------------------------------------------------
    # Training
    # ------------------------------------------------------------------
    def train(self, batch: Sequence[ReplayElement], episode_index: int) -> TrainStepInfo:
        """
        One optimisation step, plus the periodic target sync / epsilon decay.

        The sync fires at most once per qualifying episode index, however
        many train calls that episode makes.
        """
        loss = self.trainer.train_step(batch)

        target_updated = False
        if (episode_index > 0 and episode_index % self.update_target_every == 0
                and episode_index != self.last_game_update):
            self.last_game_update = episode_index
            self.model.update_target_network()
            self.epsilon = max(self.min_epsilon, self.epsilon - self.epsilon_decay)
            target_updated = True

        return TrainStepInfo(
            loss=loss,
            train_step_time=self.trainer.last_step_time,
            epsilon=self.epsilon,
            target_updated=target_updated,
        )
