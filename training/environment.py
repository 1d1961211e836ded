import os
import random
import time
from collections import Counter
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from agents.heuristic_agent import HeuristicAgent
from agents.random_agent import RandomAgent
from core.board import SYMBOL_O, SYMBOL_X, freeze_board
from core.game import GameOutcome, StepResult, TicTacTwoGame
from .checkpoint import ModelCheckpointer
from .config import RewardConfig, TrainingConfig
from .dqn.agent import DQNAgent
from .dqn.buffer import EpisodeResult, ReplayElement, ReplayMemory
from .metrics import MetricLogger, log_print


def compute_reward(result: StepResult, agent, rewards: RewardConfig) -> Tuple[float, Optional[EpisodeResult]]:
    """
    Map the last engine result of a training step to (reward, episode result).

    The result is None while the game is still running.
    """
    if result.outcome == GameOutcome.WIN:
        if result.player is agent:
            return rewards.large_positive, EpisodeResult.WIN
        return rewards.large_negative, EpisodeResult.LOSS

    if result.outcome == GameOutcome.DISQUALIFIED:
        if result.player is agent:
            return rewards.very_large_negative, EpisodeResult.DQ
        return rewards.opponent_disqualified, EpisodeResult.OPPONENT_DQ

    if result.outcome == GameOutcome.TIE:
        return rewards.tie_reward, EpisodeResult.TIE

    return rewards.small_negative, None


@dataclass
class EpisodeSummary:
    index: int
    reward: float
    result: Optional[EpisodeResult]
    steps: int
    agent_symbol: str
    loss: Optional[float] = None
    target_updated: bool = False


@dataclass
class TrainingRunState:
    """Counters for one run; owned by the environment instead of module globals."""
    episodes_played: int = 0
    total_steps: int = 0
    train_steps: int = 0
    target_updates: int = 0
    last_loss: Optional[float] = None
    results: Counter = field(default_factory=Counter)
    checkpoints: List[str] = field(default_factory=list)

    def record(self, summary: EpisodeSummary):
        self.episodes_played += 1
        self.total_steps += summary.steps
        self.results[summary.result] += 1
        if summary.target_updated:
            self.target_updates += 1


class TrainingEnvironment:
    """
    Plays the DQN agent against an opponent and trains it from replay memory.

    One step() is the agent's move plus the opponent's reply, so every stored
    transition goes from one agent decision to the next.
    """

    def __init__(
        self,
        config: TrainingConfig,
        agent: Optional[DQNAgent] = None,
        opponent=None,
        memory: Optional[ReplayMemory] = None,
        logger: Optional[MetricLogger] = None,
        checkpointer: Optional[ModelCheckpointer] = None,
        rng: Optional[random.Random] = None,
        verbose: bool = True,
    ):
        self.config = config
        self.verbose = verbose
        self.rng = rng or random.Random(config.seed)
        self.run_id = config.run_id()

        self.agent = agent or DQNAgent(
            symbol=SYMBOL_O,
            cell_width=config.cell_width,
            allow_double_moves=config.allow_double_moves,
            epsilon_start=config.epsilon_start,
            min_epsilon=config.min_epsilon,
            epsilon_decay=config.resolved_epsilon_decay,
            update_target_every=config.update_every,
            hidden_sizes=config.hidden_sizes,
            learning_rate=config.learning_rate,
            gamma=config.gamma,
            gradient_clip=config.gradient_clip,
            encoder_cache_size=config.encoder_cache_size,
            device=config.device,
            rng=random.Random(self.rng.random()),
        )
        self.opponent = opponent or self._build_opponent()

        self.game = TicTacTwoGame(self.opponent, self.agent, config.game_config(), rng=self.rng)
        self.memory = memory or ReplayMemory(config.replay_memory_capacity, rng=random.Random(self.rng.random()))
        self.logger = logger or MetricLogger(config.log_dir, self.run_id, window_size=config.reward_window)
        self.checkpointer = checkpointer or ModelCheckpointer(verbose=verbose)

        self.save_folder = os.path.join(config.save_dir, self.run_id) if config.save_dir else None
        self.state = TrainingRunState()

        if self.verbose:
            log_print(f"Training agent with config: {config.to_dict()}")
            log_print(f"Save path = {self.save_folder}")
            log_print(f"Log dir = {self.logger.run_dir}")

    def _build_opponent(self):
        cfg = self.config
        double_prob = cfg.opponent_double_move_prob if cfg.allow_double_moves else 0.0
        rng = random.Random(self.rng.random())
        if cfg.opponent == 'heuristic':
            return HeuristicAgent(symbol=SYMBOL_X, double_move_prob=double_prob,
                                  allow_double_moves=cfg.allow_double_moves, rng=rng)
        return RandomAgent(symbol=SYMBOL_X, double_move_prob=double_prob, rng=rng)

    def init(self):
        self.game.init()

    # ------------------------------------------------------------------
    # One training step
    # ------------------------------------------------------------------
    def step(self) -> ReplayElement:
        """
        Agent move, then the opponent's reply unless the game ended.

        Raises:
            RuntimeError: the agent is not the current player
        """
        if self.game.current_player is not self.agent:
            raise RuntimeError("Agent must be current_player before calling step.")

        pre_move_board = freeze_board(self.game.get_state())
        has_doubled_before = self.game.has_made_double_move(self.agent)

        result = self.game.step()  # agent move
        action = result.action
        has_doubled_after = self.game.has_made_double_move(self.agent)

        if not result.done:
            result = self.game.step()  # opponent move

        reward, episode_result = compute_reward(result, self.agent, self.config.rewards)

        return ReplayElement(
            agent_symbol=self.agent.symbol,
            pre_move_board=pre_move_board,
            action=action,
            reward=reward,
            post_move_board=freeze_board(self.game.get_state()),
            done=result.done,
            has_made_double_move_before=has_doubled_before,
            has_made_double_move_after=has_doubled_after,
            episode_result=episode_result,
        )

    # ------------------------------------------------------------------
    # Episodes
    # ------------------------------------------------------------------
    def run_episode(self, index: int) -> EpisodeSummary:
        self.game.reset()
        summary = EpisodeSummary(index=index, reward=0.0, result=None, steps=0,
                                 agent_symbol=self.agent.symbol)

        # Rewards are only collected for the agent's own decisions
        if self.game.current_player is not self.agent:
            opening = self.game.step()
            if opening.done:
                _, summary.result = compute_reward(opening, self.agent, self.config.rewards)
                self._log_episode(summary)
                return summary

        while True:
            element = self.step()
            summary.reward += element.reward
            summary.steps += 1
            self.memory.append(element)

            # Train once per finished episode
            if self.memory.full() and element.done:
                batch = self.memory.sample(self.config.batch_size)
                info = self.agent.train(batch, index)
                self.state.train_steps += 1
                self.state.last_loss = info.loss
                summary.loss = info.loss
                summary.target_updated = summary.target_updated or info.target_updated

                self.logger.log_scalar('loss', info.loss)
                self.logger.log_scalar('train_step_time', info.train_step_time)
                self.logger.log_scalar('agent.epsilon', info.epsilon)

            if element.done:
                summary.result = element.episode_result
                break

        self._log_episode(summary)
        return summary

    def _log_episode(self, summary: EpisodeSummary):
        window = self.logger.add_episode_reward(summary.reward, summary.result)
        self.logger.log_episode(
            episode=summary.index,
            symbol=summary.agent_symbol,
            opponent=getattr(self.opponent, 'name', type(self.opponent).__name__),
            result=summary.result,
            reward=summary.reward,
            moves=summary.steps,
            loss=summary.loss,
            epsilon=self.agent.epsilon,
        )
        if window is not None and self.verbose:
            log_print(
                f"Game {summary.index:6d} | mean reward {window['mean_reward']:8.3f} | "
                f"W {window['wins']:3d} L {window['losses']:3d} DQ {window['dqs']:3d} "
                f"ODQ {window['opponent_dqs']:3d} T {window['ties']:3d} | eps {self.agent.epsilon:.3f}"
            )

    def save_checkpoint(self, tag) -> Optional[str]:
        if self.save_folder is None:
            return None
        path = os.path.join(self.save_folder, f"dqn_{tag}.pth")
        self.checkpointer.save(
            self.agent.model, path,
            episode=self.state.episodes_played,
            epsilon=float(self.agent.epsilon),
        )
        self.state.checkpoints.append(path)
        return path

    def run(self) -> TrainingRunState:
        self.init()
        start = time.time()

        for index in range(self.config.num_games):
            summary = self.run_episode(index)
            self.state.record(summary)

            if index > 0 and index % self.config.save_model_every == 0:
                if self.verbose:
                    log_print(f"Done with game {index}. Saving model to disk")
                self.save_checkpoint(index)

        self.save_checkpoint('final')

        if self.verbose:
            log_print(f"\n *** Done with training: {self.state.episodes_played} games "
                      f"in {time.time() - start:.1f}s *** \n")
        return self.state
