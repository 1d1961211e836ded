import time
from typing import Optional, Sequence

import torch
import torch.nn.functional as F

from core.action_manager import ActionManager
from core.board_encoder import TicTacTwoBoardEncoder
from .buffer import ReplayElement
from .model import DQNModel


class DQNTrainer:
    """
    Single Bellman/MSE optimisation step over a replay batch.

        target = reward                                     if done
        target = reward + gamma * max_a Q_target(next, a)   otherwise

    Only the online network's parameters are handed to the optimiser.
    """

    def __init__(
        self,
        model: DQNModel,
        action_manager: ActionManager,
        board_encoder: TicTacTwoBoardEncoder,
        optimizer: Optional[torch.optim.Optimizer] = None,
        learning_rate: float = 1e-3,
        gamma: float = 0.90,
        gradient_clip: Optional[float] = None,
    ):
        self.model = model
        self.action_manager = action_manager
        self.board_encoder = board_encoder
        self.device = model.device
        self.gamma = gamma
        self.gradient_clip = gradient_clip
        self.optimizer = optimizer or torch.optim.Adam(model.online.parameters(), lr=learning_rate)
        self.last_step_time = 0.0

    def _unzip(self, batch: Sequence[ReplayElement]):
        symbols = [r.agent_symbol for r in batch]

        states = self.board_encoder.batch_encode(
            [r.pre_move_board for r in batch], symbols,
            [r.has_made_double_move_before for r in batch],
        ).to(self.device)
        next_states = self.board_encoder.batch_encode(
            [r.post_move_board for r in batch], symbols,
            [r.has_made_double_move_after for r in batch],
        ).to(self.device)

        actions = torch.tensor(
            [self.action_manager.encode_move(r.action) for r in batch],
            dtype=torch.long, device=self.device,
        ).unsqueeze(1)
        rewards = torch.tensor([r.reward for r in batch], dtype=torch.float32, device=self.device)
        # 1.0 where the game continues, 0.0 where there is no next Q
        not_done = torch.tensor([0.0 if r.done else 1.0 for r in batch], dtype=torch.float32, device=self.device)

        return states, actions, rewards, next_states, not_done

    def compute_loss(self, batch: Sequence[ReplayElement]) -> torch.Tensor:
        states, actions, rewards, next_states, not_done = self._unzip(batch)

        # 1. Q of the action actually taken
        q_values = self.model.online(states)
        q_value = q_values.gather(1, actions).squeeze(1)

        # 2. Bellman target from the target network
        with torch.no_grad():
            next_q = self.model.target(next_states).max(dim=1).values
            expected_q_value = rewards + self.gamma * next_q * not_done

        # 3. Loss
        return F.mse_loss(q_value, expected_q_value)

    def train_step(self, batch: Sequence[ReplayElement]) -> float:
        """
        Run one optimisation step.

        Returns:
            Loss value before the update

        Raises:
            ValueError: empty batch
        """
        if not batch:
            raise ValueError("Cannot train on an empty batch")

        start = time.perf_counter()
        self.model.train()

        loss = self.compute_loss(batch)

        self.optimizer.zero_grad()
        loss.backward()
        if self.gradient_clip is not None:
            torch.nn.utils.clip_grad_norm_(self.model.online.parameters(), self.gradient_clip)
        self.optimizer.step()

        self.last_step_time = time.perf_counter() - start
        return loss.item()
