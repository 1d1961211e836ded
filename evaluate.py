import argparse
import random
import time
from dataclasses import dataclass
from typing import Optional

import torch
from tqdm import tqdm

from agents.heuristic_agent import HeuristicAgent
from agents.random_agent import RandomAgent
from core.board import SYMBOL_O, SYMBOL_X
from core.errors import ConfigurationError
from core.game import GameConfig, GameOutcome, TicTacTwoGame
from training.dqn.agent import DQNAgent


@dataclass
class MatchStats:
    games: int = 0
    wins_a: int = 0
    wins_b: int = 0
    ties: int = 0
    dq_a: int = 0
    dq_b: int = 0

    def rate(self, count: int) -> float:
        return 100.0 * count / self.games if self.games else 0.0

    def report(self, name_a: str, name_b: str) -> str:
        return (
            f"{self.games} games | {name_a} wins {self.wins_a} ({self.rate(self.wins_a):.1f}%) | "
            f"{name_b} wins {self.wins_b} ({self.rate(self.wins_b):.1f}%) | "
            f"ties {self.ties} ({self.rate(self.ties):.1f}%) | "
            f"DQ {name_a} {self.dq_a} / {name_b} {self.dq_b}"
        )


def play_match(agent_a, agent_b, num_games: int, config: Optional[GameConfig] = None,
               rng: Optional[random.Random] = None, render: bool = False, delay: float = 0.0,
               progress: bool = False) -> MatchStats:
    """
    Play `num_games` full games between two agents and count the outcomes.
    Any objects satisfying the agent contract can be used on either side.
    """
    game = TicTacTwoGame(agent_a, agent_b, config, rng=rng)
    game.init()
    stats = MatchStats()

    for _ in tqdm(range(num_games), desc="Evaluating", disable=not progress):
        game.reset()
        if render:
            game.render()

        while not game.done:
            prev_board = game.get_state()
            result = game.step()
            if render:
                time.sleep(delay)
                print(f"\n{result.player.name} ({result.player.symbol}) plays {list(result.action.positions)}")
                game.render(prev_board)

        stats.games += 1
        result = game.last_result
        if result.outcome == GameOutcome.WIN:
            if result.player is agent_a:
                stats.wins_a += 1
            else:
                stats.wins_b += 1
        elif result.outcome == GameOutcome.DISQUALIFIED:
            # A disqualification counts as a win for the other side
            if result.player is agent_a:
                stats.dq_a += 1
                stats.wins_b += 1
            else:
                stats.dq_b += 1
                stats.wins_a += 1
        else:
            stats.ties += 1

        if render:
            print(f"\nResult: {result.outcome.value} ({result.player.name})")

    return stats


def build_opponent(kind: str, allow_double_moves: bool, rng: random.Random, cell_width: int = 3,
                   model_path: Optional[str] = None, hidden_sizes=(512, 512), device="cpu"):
    """
    Opponent for evaluation, always playing 'x': 'random', 'heuristic', or
    'dqn' (a greedy agent loaded from `model_path`).
    """
    double_prob = 0.25 if allow_double_moves else 0.0
    if kind == 'heuristic':
        return HeuristicAgent(symbol=SYMBOL_X, double_move_prob=double_prob,
                              allow_double_moves=allow_double_moves, rng=rng)
    if kind == 'dqn':
        if not model_path:
            raise ConfigurationError("A dqn opponent needs a checkpoint path")
        opp = DQNAgent(
            symbol=SYMBOL_X,
            name='dqn-opponent',
            cell_width=cell_width,
            allow_double_moves=allow_double_moves,
            epsilon_start=0.0,
            min_epsilon=0.0,
            hidden_sizes=hidden_sizes,
            model_path=model_path,
            device=device,
            rng=rng,
        )
        opp.model.eval()
        return opp
    if kind == 'random':
        return RandomAgent(symbol=SYMBOL_X, double_move_prob=double_prob, rng=rng)
    raise ConfigurationError(f"Unknown opponent: {kind!r}")


def evaluate(checkpoint_path, opponent='random', num_games=1000, cell_width=3, hidden_sizes=(512, 512),
             seed=None, render=False, delay=0.5, opponent_path=None):
    device = torch.device("cuda" if torch.cuda.is_available() else "cpu")
    rng = random.Random(seed)
    allow_double_moves = cell_width > 1

    print(f"Loading model: {checkpoint_path}")
    agent = DQNAgent(
        symbol=SYMBOL_O,
        name='dqn',
        cell_width=cell_width,
        allow_double_moves=allow_double_moves,
        epsilon_start=0.0,
        min_epsilon=0.0,
        hidden_sizes=hidden_sizes,
        model_path=checkpoint_path,
        device=device,
        rng=random.Random(rng.random()),
    )
    agent.model.eval()
    opp = build_opponent(opponent, allow_double_moves, random.Random(rng.random()), cell_width=cell_width,
                         model_path=opponent_path, hidden_sizes=hidden_sizes, device=device)

    config = GameConfig(cell_width=cell_width, allow_double_moves=allow_double_moves)
    stats = play_match(agent, opp, num_games, config, rng=rng, render=render, delay=delay,
                       progress=not render)
    print(stats.report(agent.name, opp.name))
    return stats


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description='Evaluate a trained DQN agent.')
    parser.add_argument("--path", type=str, required=True, help="Path to checkpoint")
    parser.add_argument("--opponent", type=str, default='random', choices=['random', 'heuristic', 'dqn'])
    parser.add_argument("--opponent-path", type=str, default=None, help="Checkpoint for --opponent dqn")
    parser.add_argument("--games", type=int, default=1000, help="Number of games")
    parser.add_argument("--cell-width", type=int, default=3, help="1 = tic-tac-toe, 3 = tic-tac-two")
    parser.add_argument("--hidden", type=int, nargs='+', default=[512, 512], help="Hidden layer sizes")
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--render", action='store_true', help="Print every move")
    parser.add_argument("--speed", type=float, default=0.2, help="Delay between rendered moves")
    args = parser.parse_args()

    evaluate(args.path, args.opponent, args.games, args.cell_width, tuple(args.hidden),
             args.seed, args.render, args.speed, args.opponent_path)
