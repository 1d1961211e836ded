from .buffer import EpisodeResult, ReplayElement, ReplayMemory
from .model import DQNModel, QNetwork
from .trainer import DQNTrainer
from .agent import DQNAgent, TrainStepInfo

__all__ = [
    'EpisodeResult',
    'ReplayElement',
    'ReplayMemory',
    'DQNModel',
    'QNetwork',
    'DQNTrainer',
    'DQNAgent',
    'TrainStepInfo',
]
