import csv
import os
import random

import numpy as np
import pytest
import torch

from agents.scripted_agent import ScriptedAgent
from core.board import board_to_string
from core.game import GameOutcome, StepResult
from core.rules import Move
from plot_training_log import plot_training_log
from training.config import RewardConfig, TrainingConfig
from training.dqn.agent import DQNAgent
from training.dqn.buffer import EpisodeResult
from training.environment import TrainingEnvironment, compute_reward
from training.metrics import MetricLogger


def forced_agent(action_id=4):
    agent = DQNAgent(symbol='o', hidden_sizes=(16,), epsilon_start=0.0, min_epsilon=0.0,
                     update_target_every=2, rng=random.Random(0))
    with torch.no_grad():
        for net in (agent.model.online, agent.model.target):
            net.output_fc.weight.zero_()
            net.output_fc.bias.zero_()
            net.output_fc.bias[action_id] = 100.0
    return agent


def fixed_config(tmp_path=None, **overrides):
    params = dict(
        randomize_order=False,
        randomize_symbol=False,
        replay_memory_capacity=4,
        batch_size=2,
        num_games=5,
        update_every=2,
        save_model_every=2,
        reward_window=2,
        save_dir=str(tmp_path / 'models') if tmp_path else None,
        log_dir=str(tmp_path / 'logs') if tmp_path else None,
        seed=0,
    )
    params.update(overrides)
    return TrainingConfig(**params)


def make_env(tmp_path=None, opponent_script=((0,), (1,), (2,), (3,)), **overrides):
    """Opponent (x) always starts; the agent (o) always plays cell 4."""
    opponent = ScriptedAgent(opponent_script, symbol='x', name='scripted')
    return TrainingEnvironment(fixed_config(tmp_path, **overrides), agent=forced_agent(),
                               opponent=opponent, verbose=False)


def test_compute_reward_mapping():
    rewards = RewardConfig()
    agent, opponent = object(), object()
    move = Move.single(0, 'x')

    def result(outcome, player):
        return StepResult(outcome=outcome, action=move, player=player)

    assert compute_reward(result(GameOutcome.WIN, agent), agent, rewards) == (20.0, EpisodeResult.WIN)
    assert compute_reward(result(GameOutcome.WIN, opponent), agent, rewards) == (-10.0, EpisodeResult.LOSS)
    assert compute_reward(result(GameOutcome.DISQUALIFIED, agent), agent, rewards) == (-30.0, EpisodeResult.DQ)
    assert compute_reward(result(GameOutcome.DISQUALIFIED, opponent), agent, rewards) == (0.0, EpisodeResult.OPPONENT_DQ)
    assert compute_reward(result(GameOutcome.TIE, agent), agent, rewards) == (-0.05, EpisodeResult.TIE)
    assert compute_reward(result(GameOutcome.IN_PROGRESS, agent), agent, rewards) == (-0.05, None)

    custom = RewardConfig(tie=1.0, opponent_disqualified=5.0)
    assert compute_reward(result(GameOutcome.TIE, agent), agent, custom)[0] == 1.0
    assert compute_reward(result(GameOutcome.DISQUALIFIED, opponent), agent, custom)[0] == 5.0


def test_step_requires_agent_turn():
    env = make_env()
    env.game.reset()
    assert env.game.current_player is env.opponent
    with pytest.raises(RuntimeError):
        env.step()


def test_episode_skips_opponent_opening():
    env = make_env(replay_memory_capacity=10)
    summary = env.run_episode(0)

    # o plays 4, 4 (owned), then 4 again -> cell full
    assert summary.result == EpisodeResult.DQ
    assert summary.steps == 3
    assert summary.reward == pytest.approx(-0.05 - 0.05 - 30.0)
    assert env.memory.size() == 3

    first, second, last = env.memory.memory[:3]
    assert board_to_string(first.pre_move_board).startswith('x--|---|---|---|---|')
    assert board_to_string(first.post_move_board).startswith('x--|x--|---|---|o--|')
    assert first.agent_symbol == 'o'
    assert not first.done and first.episode_result is None
    assert last.done and last.episode_result == EpisodeResult.DQ
    assert np.array_equal(last.pre_move_board, last.post_move_board)
    assert not last.pre_move_board.flags.writeable


def test_opponent_disqualified_on_opening():
    env = make_env(opponent_script=[(9,)])
    summary = env.run_episode(0)
    assert summary.result == EpisodeResult.OPPONENT_DQ
    assert summary.steps == 0
    assert env.memory.size() == 0


def test_trains_once_memory_is_full():
    env = make_env()
    env.run_episode(0)
    assert env.state.train_steps == 0
    summary = env.run_episode(1)
    assert env.memory.full()
    assert env.state.train_steps == 1
    assert summary.loss is not None
    assert [name for name in ('loss', 'train_step_time', 'agent.epsilon') if name in env.logger.history] == \
        ['loss', 'train_step_time', 'agent.epsilon']


def test_run_checkpoints_and_logs(tmp_path):
    env = make_env(tmp_path)
    state = env.run()

    assert state.episodes_played == 5
    assert state.results[EpisodeResult.DQ] == 5
    assert state.total_steps == 15
    # Trains on episodes 1-4, syncs on 2 and 4
    assert state.train_steps == 4
    assert state.target_updates == 2

    names = [os.path.basename(p) for p in state.checkpoints]
    assert names == ['dqn_2.pth', 'dqn_4.pth', 'dqn_final.pth']
    assert all(os.path.exists(p) for p in state.checkpoints)

    with open(env.logger.episodes_path, newline='') as f:
        rows = list(csv.DictReader(f))
    assert len(rows) == 5
    assert {row['Result'] for row in rows} == {'dq'}

    with open(env.logger.scalars_path, newline='') as f:
        metrics = {row['metric'] for row in csv.DictReader(f)}
    assert 'loss' in metrics
    assert 'Mean Cumulative Reward (2)' in metrics

    out = plot_training_log(env.logger.episodes_path, str(tmp_path / 'dashboard.png'), window=2)
    assert out is not None and os.path.exists(out)


def test_random_opponent_smoke(tmp_path):
    config = TrainingConfig.from_preset('quick_test', num_games=30, replay_memory_capacity=20, batch_size=8,
                                        update_every=5, save_model_every=10, hidden_sizes=(16,),
                                        save_dir=str(tmp_path / 'm'), log_dir=str(tmp_path / 'l'), seed=1)
    env = TrainingEnvironment(config, verbose=False)
    state = env.run()
    assert state.episodes_played == 30
    assert sum(state.results.values()) == 30
    assert state.train_steps > 0
    assert env.agent.epsilon < config.epsilon_start
    assert isinstance(env.logger, MetricLogger)


def test_heuristic_opponent_follows_tic_tac_toe_rules():
    config = fixed_config(cell_width=1, allow_double_moves=False, opponent='heuristic',
                          hidden_sizes=(16,), randomize_order=True, num_games=30)
    env = TrainingEnvironment(config, verbose=False)
    assert not env.opponent.allow_double_moves

    state = env.run()
    assert state.episodes_played == 30
    assert state.results[EpisodeResult.OPPONENT_DQ] == 0
