#!/usr/bin/env python3
"""
train_dqn.py - DQN Tic-Tac-Two Training Script

Trains a DQN agent against a random (or heuristic) opponent:
- Epsilon-greedy self-play against the opponent
- Replay memory, online/target networks
- CSV metrics under --log-dir, checkpoints under --save-dir
"""

import argparse
import os
import sys

# Add project root to path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from training.config import CONFIGS, TrainingConfig, print_config, set_seed
from training.environment import TrainingEnvironment
from training.metrics import log_print


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description='Train a DQN tic-tac-two agent.')
    parser.add_argument('--config', type=str, default='tic_tac_two', choices=sorted(CONFIGS),
                        help='Configuration preset')
    parser.add_argument('--num-games', type=int, default=None, help='Override number of games')
    parser.add_argument('--batch-size', type=int, default=None)
    parser.add_argument('--capacity', type=int, default=None, help='Replay memory capacity')
    parser.add_argument('--update-every', type=int, default=None, help='Games between target syncs')
    parser.add_argument('--save-every', type=int, default=None, help='Games between checkpoints')
    parser.add_argument('--opponent', type=str, default=None, choices=['random', 'heuristic'])
    parser.add_argument('--save-dir', type=str, default='models')
    parser.add_argument('--log-dir', type=str, default='logs')
    parser.add_argument('--seed', type=int, default=None)
    parser.add_argument('--device', type=str, default='cpu')
    parser.add_argument('--quiet', action='store_true')
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    if not args.quiet:
        print_config(args.config)

    config = TrainingConfig.from_preset(
        args.config,
        num_games=args.num_games,
        batch_size=args.batch_size,
        replay_memory_capacity=args.capacity,
        update_every=args.update_every,
        save_model_every=args.save_every,
        opponent=args.opponent,
        save_dir=args.save_dir,
        log_dir=args.log_dir,
        seed=args.seed,
        device=args.device,
    )
    if config.seed is not None:
        set_seed(config.seed)

    env = TrainingEnvironment(config, verbose=not args.quiet)
    state = env.run()

    results = {(k.value if k else "none"): v for k, v in state.results.items()}
    log_print(f"Results: {results}")
    log_print(f"Train steps: {state.train_steps} | target syncs: {state.target_updates}")
    return state


if __name__ == "__main__":
    main()
