import pytest

from core.errors import ConfigurationError
from scripts.train_dqn import main as train_main
from training.config import CONFIGS, TrainingConfig, derive_epsilon_decay
from training.dqn.buffer import EpisodeResult
from training.metrics import MetricLogger


def test_epsilon_decay_leaves_last_third_at_min():
    decay = derive_epsilon_decay(20000, 200, 0.95, 0.01)
    # 100 epochs, 33 held at the floor
    assert decay == pytest.approx(0.94 / 67)
    assert derive_epsilon_decay(10, 20, 0.95, 0.01) == pytest.approx(0.94)


def test_presets_materialise():
    for name in CONFIGS:
        config = TrainingConfig.from_preset(name)
        assert config.batch_size <= config.replay_memory_capacity

    toe = TrainingConfig.from_preset('tic_tac_toe')
    assert toe.cell_width == 1 and not toe.allow_double_moves
    assert toe.game_config().cell_width == 1

    two = TrainingConfig.from_preset('tic_tac_two', num_games=400, batch_size=None)
    assert two.num_games == 400
    assert two.batch_size == 256
    assert two.to_dict()['epsilon_decay'] == pytest.approx(two.resolved_epsilon_decay)


@pytest.mark.parametrize("overrides", [
    dict(replay_memory_capacity=0),
    dict(replay_memory_capacity=10, batch_size=11),
    dict(epsilon_start=0.1, min_epsilon=0.2),
    dict(opponent='minimax'),
    dict(cell_width=0),
])
def test_invalid_config_rejected(overrides):
    with pytest.raises(ConfigurationError):
        TrainingConfig(**overrides)


def test_unknown_preset():
    with pytest.raises(ConfigurationError):
        TrainingConfig.from_preset('gomoku')


def test_log_scalar_auto_steps():
    logger = MetricLogger()
    logger.log_scalar('loss', 1.0)
    logger.log_scalar('loss', 0.5)
    logger.log_scalar('loss', 0.2, step=10)
    assert list(logger.history['loss']) == [(0, 1.0), (1, 0.5), (10, 0.2)]


def test_history_keeps_only_recent_values():
    logger = MetricLogger(history_size=5)
    for i in range(50):
        logger.log_scalar('loss', float(i))
    assert len(logger.history['loss']) == 5
    assert list(logger.history['loss'])[0] == (45, 45.0)
    assert logger.steps['loss'] == 50


def test_episode_window_summary():
    logger = MetricLogger(window_size=3)
    assert logger.add_episode_reward(20.0, EpisodeResult.WIN) is None
    assert logger.add_episode_reward(-30.0, EpisodeResult.DQ) is None
    summary = logger.add_episode_reward(1.0, EpisodeResult.TIE)
    assert summary['mean_reward'] == pytest.approx(-3.0)
    assert (summary['wins'], summary['losses'], summary['dqs'], summary['ties']) == (1, 0, 1, 1)
    assert 'Mean Cumulative Reward (3)' in logger.history

    # Next summary only after another full window
    assert logger.add_episode_reward(0.0, EpisodeResult.OPPONENT_DQ) is None
    assert logger.add_episode_reward(0.0, EpisodeResult.LOSS) is None
    summary = logger.add_episode_reward(0.0, EpisodeResult.LOSS)
    assert (summary['losses'], summary['opponent_dqs'], summary['wins']) == (2, 1, 0)


def test_train_script_end_to_end(tmp_path):
    state = train_main([
        '--config', 'quick_test', '--num-games', '6', '--capacity', '8', '--batch-size', '4',
        '--update-every', '2', '--save-every', '3', '--seed', '0', '--quiet',
        '--save-dir', str(tmp_path / 'models'), '--log-dir', str(tmp_path / 'logs'),
    ])
    assert state.episodes_played == 6
    assert state.checkpoints[-1].endswith('dqn_final.pth')
