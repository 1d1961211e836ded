import torch
import torch.nn as nn
import torch.nn.functional as F
from typing import Dict, Sequence, Union


class QNetwork(nn.Module):
    """
    Dense Q-network: flat feature vector in, one Q-value per action out.

    Layout:
        input -> Linear(input_dim, input_dim)
              -> Linear(., hidden[0]) + ReLU -> ... -> Linear(., action_dim)

    The first layer is a linear re-projection of the one-hot input (no
    activation), the hidden layers are ReLU.
    """

    def __init__(
        self,
        input_dim: int,
        action_dim: int,
        hidden_sizes: Sequence[int] = (512, 512),
        device: Union[str, torch.device] = "cpu",
    ):
        """
        Args:
            input_dim: Feature vector size (from TicTacTwoBoardEncoder)
            action_dim: Number of possible actions (from ActionManager)
            hidden_sizes: Units of each ReLU layer
            device: Device to place the model on (cpu or cuda)
        """
        super(QNetwork, self).__init__()

        self.input_dim = input_dim
        self.action_dim = action_dim
        self.hidden_sizes = tuple(hidden_sizes)
        self.device = torch.device(device) if isinstance(device, str) else device

        self.input_fc = nn.Linear(input_dim, input_dim)

        layers = []
        in_features = input_dim
        for units in self.hidden_sizes:
            layers.append(nn.Linear(in_features, units))
            in_features = units
        self.hidden = nn.ModuleList(layers)

        self.output_fc = nn.Linear(in_features, action_dim)

        self._init_weights()
        self.to(self.device)

    def _init_weights(self):
        """Glorot weights, zero biases."""
        for module in self.modules():
            if isinstance(module, nn.Linear):
                nn.init.xavier_uniform_(module.weight)
                if module.bias is not None:
                    nn.init.constant_(module.bias, 0.0)

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        """
        Args:
            x: Feature tensor of shape (batch, input_dim) or (input_dim,)

        Returns:
            Q-values tensor of shape (batch, action_dim)
        """
        # Handle single state (no batch dimension)
        if x.dim() == 1:
            x = x.unsqueeze(0)

        x = x.to(self.device)
        x = self.input_fc(x)
        for layer in self.hidden:
            x = F.relu(layer(x))
        return self.output_fc(x)

    def get_q_values(self, state: torch.Tensor) -> torch.Tensor:
        if not isinstance(state, torch.Tensor):
            state = torch.as_tensor(state, dtype=torch.float32)
        return self.forward(state.to(self.device))


class DQNModel:
    """
    Online/target network pair.

    - Online network: action selection, optimised every train step
    - Target network: Bellman targets, only changed by update_target_network()
    """

    def __init__(
        self,
        input_dim: int,
        action_dim: int,
        hidden_sizes: Sequence[int] = (512, 512),
        device: Union[str, torch.device] = "cpu",
    ):
        self.input_dim = input_dim
        self.action_dim = action_dim
        self.hidden_sizes = tuple(hidden_sizes)
        self.device = torch.device(device) if isinstance(device, str) else device

        self.online = QNetwork(input_dim, action_dim, hidden_sizes, self.device)
        self.target = QNetwork(input_dim, action_dim, hidden_sizes, self.device)

        # Both networks start from the same weights
        self.update_target_network()
        self.target.eval()

        for param in self.target.parameters():
            param.requires_grad_(False)

    def update_target_network(self):
        """Hard copy of the online weights into the target network."""
        self.target.load_state_dict(self.online.state_dict())

    def get_q_values(self, state: torch.Tensor, use_target: bool = False) -> torch.Tensor:
        """
        Args:
            state: Feature tensor of shape (batch, input_dim) or (input_dim,)
            use_target: If True, use target network; otherwise use online network

        Returns:
            Q-values tensor of shape (batch, action_dim)
        """
        network = self.target if use_target else self.online
        return network.get_q_values(state)

    def get_parameters(self) -> Dict[str, Dict[str, torch.Tensor]]:
        return {
            'online': self.online.state_dict(),
            'target': self.target.state_dict(),
        }

    def set_parameters(self, params: Dict[str, Dict[str, torch.Tensor]]):
        self.online.load_state_dict(params['online'])
        self.target.load_state_dict(params.get('target', params['online']))

    def train(self):
        """Set online network to training mode."""
        self.online.train()

    def eval(self):
        """Set both networks to evaluation mode."""
        self.online.eval()
        self.target.eval()

    def to(self, device: Union[str, torch.device]):
        """Move both networks to specified device."""
        self.device = torch.device(device) if isinstance(device, str) else device
        self.online.to(self.device)
        self.target.to(self.device)

        self.online.device = self.device
        self.target.device = self.device

        return self
