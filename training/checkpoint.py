import os
from typing import Any, Dict, Optional, Union

import torch


class ModelCheckpointer:
    """
    Saves and restores the online/target pair of a DQNModel.

    Written format: {"online": state_dict, "target": state_dict, **extra}.
    load() also accepts the older {"model": {...}} wrapper and a bare
    online state dict (the target is then synced from the online net).
    """

    def __init__(self, device: Optional[Union[str, torch.device]] = None, verbose: bool = True):
        self.device = device
        self.verbose = verbose

    def save(self, model, path: str, **extra: Any) -> str:
        """
        Args:
            model: Anything with .online and .target torch modules
            path: Destination file; parent directories are created
            extra: Plain metadata stored next to the weights (episode, epsilon, ...)

        Returns:
            The path written
        """
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        checkpoint: Dict[str, Any] = {
            "online": model.online.state_dict(),
            "target": model.target.state_dict(),
        }
        checkpoint.update(extra)
        torch.save(checkpoint, path)

        if self.verbose:
            print(f"Checkpoint saved: {path}", flush=True)
        return path

    def load(self, model, path: str) -> Dict[str, Any]:
        """
        Load weights into `model` in place.

        Returns:
            The metadata stored alongside the weights (empty for raw state dicts)
        """
        device = self.device or getattr(model, "device", "cpu")
        state = torch.load(path, map_location=device, weights_only=True)

        # Case 1: {"online": ..., "target": ...}
        if isinstance(state, dict) and "online" in state and "target" in state:
            model.online.load_state_dict(state["online"])
            model.target.load_state_dict(state["target"])
            metadata = {k: v for k, v in state.items() if k not in ("online", "target")}

        # Case 2: {"model": {"online": ..., "target": ...}} or {"model": online_state}
        elif isinstance(state, dict) and "model" in state:
            model_state = state["model"]
            if "online" in model_state and "target" in model_state:
                model.online.load_state_dict(model_state["online"])
                model.target.load_state_dict(model_state["target"])
            else:
                model.online.load_state_dict(model_state)
                model.update_target_network()
            metadata = {k: v for k, v in state.items() if k != "model"}

        # Case 3: raw online state dict
        else:
            model.online.load_state_dict(state)
            model.update_target_network()
            metadata = {}

        if self.verbose:
            print(f"Loaded weights from {path}", flush=True)
        return metadata
