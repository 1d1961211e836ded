from .base import Agent
from .random_agent import RandomAgent
from .heuristic_agent import HeuristicAgent
from .scripted_agent import ScriptedAgent

__all__ = ['Agent', 'RandomAgent', 'HeuristicAgent', 'ScriptedAgent']
