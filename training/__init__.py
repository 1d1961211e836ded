from .config import CONFIGS, RewardConfig, TrainingConfig, derive_epsilon_decay, set_seed
from .checkpoint import ModelCheckpointer
from .metrics import MetricLogger, log_print
from .environment import EpisodeSummary, TrainingEnvironment, TrainingRunState, compute_reward

__all__ = [
    'CONFIGS',
    'RewardConfig',
    'TrainingConfig',
    'derive_epsilon_decay',
    'set_seed',
    'ModelCheckpointer',
    'MetricLogger',
    'log_print',
    'EpisodeSummary',
    'TrainingEnvironment',
    'TrainingRunState',
    'compute_reward',
]
