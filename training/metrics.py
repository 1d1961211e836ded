import csv
import os
from collections import Counter, deque
from typing import Deque, Dict, Optional, Tuple

from .dqn.buffer import EpisodeResult

SCALARS_FILE = "scalars.csv"
EPISODES_FILE = "episodes.csv"

EPISODE_HEADER = ['Episode', 'Symbol', 'Opponent', 'Result', 'Reward', 'Moves',
                  'WinRate', 'Loss', 'Epsilon']


def log_print(msg):
    """Forces print to flush immediately."""
    print(msg, flush=True)


class MetricLogger:
    """
    Training metrics as CSV files under `log_dir/run_id`.

    - log_scalar(): one row per value in scalars.csv (metric, step, value)
    - add_episode_reward(): rolling window of episode rewards/results; every
      `window_size` episodes (once the window is full) logs the mean reward
      and the win/loss/DQ/opponent-DQ/tie counts of the window
    - log_episode(): one row per episode in episodes.csv, for plotting

    With log_dir=None nothing is written. The last `history_size` values of
    each metric are kept in `self.history` for inspection either way.
    """

    def __init__(self, log_dir: Optional[str] = None, run_id: str = "run", window_size: int = 100,
                 history_size: int = 1000):
        self.window_size = window_size
        self.window: deque = deque(maxlen=window_size)
        self.num_reward_samples = 0
        self.steps: Dict[str, int] = {}
        self.history_size = history_size
        self.history: Dict[str, Deque[Tuple[int, float]]] = {}

        self.run_dir = None
        self.scalars_path = None
        self.episodes_path = None
        if log_dir is not None:
            self.run_dir = os.path.join(log_dir, run_id)
            os.makedirs(self.run_dir, exist_ok=True)
            self.scalars_path = os.path.join(self.run_dir, SCALARS_FILE)
            self.episodes_path = os.path.join(self.run_dir, EPISODES_FILE)

            with open(self.scalars_path, 'w', newline='') as f:
                csv.writer(f).writerow(['metric', 'step', 'value'])
            with open(self.episodes_path, 'w', newline='') as f:
                csv.writer(f).writerow(EPISODE_HEADER)

    # ------------------------------------------------------------------
    # Scalars
    # ------------------------------------------------------------------
    def log_scalar(self, name: str, value: float, step: Optional[int] = None):
        """Steps auto-increment per metric when not given."""
        if step is None:
            step = self.steps.get(name, 0)
            self.steps[name] = step + 1

        if name not in self.history:
            self.history[name] = deque(maxlen=self.history_size)
        self.history[name].append((step, float(value)))

        if self.scalars_path is not None:
            with open(self.scalars_path, 'a', newline='') as f:
                csv.writer(f).writerow([name, step, f"{float(value):.6g}"])

    # ------------------------------------------------------------------
    # Episode window
    # ------------------------------------------------------------------
    def add_episode_reward(self, reward: float, result: Optional[EpisodeResult]) -> Optional[Dict[str, float]]:
        """
        Returns:
            The window summary when one was logged, else None
        """
        self.window.append((float(reward), result))
        self.num_reward_samples += 1

        if len(self.window) < self.window_size or self.num_reward_samples % self.window_size != 0:
            return None

        counts = Counter(r for _, r in self.window)
        summary = {
            'mean_reward': sum(r for r, _ in self.window) / len(self.window),
            'wins': counts[EpisodeResult.WIN],
            'losses': counts[EpisodeResult.LOSS],
            'dqs': counts[EpisodeResult.DQ],
            'opponent_dqs': counts[EpisodeResult.OPPONENT_DQ],
            'ties': counts[EpisodeResult.TIE] + counts[None],
        }

        n = self.window_size
        self.log_scalar(f"Mean Cumulative Reward ({n})", summary['mean_reward'])
        self.log_scalar(f"skill/Wins (last {n} games)", summary['wins'])
        self.log_scalar(f"skill/Losses (last {n} games)", summary['losses'])
        self.log_scalar(f"skill/Disqualifications (last {n} games)", summary['dqs'])
        self.log_scalar(f"skill/Opponent disqualifications (last {n} games)", summary['opponent_dqs'])
        self.log_scalar(f"skill/Ties (last {n} games)", summary['ties'])
        return summary

    def win_rate(self) -> float:
        if not self.window:
            return 0.0
        wins = sum(1 for _, r in self.window if r == EpisodeResult.WIN)
        return 100.0 * wins / len(self.window)

    # ------------------------------------------------------------------
    # Per-episode CSV
    # ------------------------------------------------------------------
    def log_episode(
        self,
        episode: int,
        symbol: str,
        opponent: str,
        result: Optional[EpisodeResult],
        reward: float,
        moves: int,
        loss: Optional[float],
        epsilon: float,
    ):
        if self.episodes_path is None:
            return
        res_str = result.value if result is not None else ''
        loss_str = f"{loss:.5f}" if loss is not None else ''
        with open(self.episodes_path, 'a', newline='') as f:
            csv.writer(f).writerow([
                episode, symbol, opponent, res_str, f"{reward:.4f}", moves,
                f"{self.win_rate():.1f}", loss_str, f"{epsilon:.4f}",
            ])
