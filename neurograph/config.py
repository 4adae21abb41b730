"""Network configuration, built-in presets and config-file loading."""

from __future__ import annotations

import json
import os
from copy import deepcopy
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Dict, Mapping, Optional, Tuple

from .core.activations import REGISTRY as ACTIVATIONS
from .core.errors import ConfigurationError
from .core.types import DEFAULT_WEIGHT_RANGE, NetworkType

LOG_LEVEL_ENV = "NEUROGRAPH_LOG_LEVEL"
DEFAULT_LOG_LEVEL = "WARNING"


def log_level_from_env() -> str:
    return os.environ.get(LOG_LEVEL_ENV, DEFAULT_LOG_LEVEL).upper()


@dataclass(frozen=True)
class NetworkConfig:
    """Resolved description of a layered network.

    ``layers`` lists neuron counts with the input layer first. When
    ``use_bias`` is set every layer but the last gets one extra bias neuron
    wired into the next layer.
    """

    layers: Tuple[int, ...]
    activation: str = "sigmoid"
    input_activation: str = "identity"
    use_bias: bool = True
    weight_range: Tuple[float, float] = DEFAULT_WEIGHT_RANGE
    seed: Optional[int] = None
    network_type: NetworkType = NetworkType.MULTI_LAYER_PERCEPTRON
    label: Optional[str] = None
    extra: Dict[str, object] = field(default_factory=dict, compare=False)

    def __post_init__(self) -> None:
        if len(self.layers) < 2:
            raise ConfigurationError("A network needs at least an input and an output layer")
        if any(int(size) < 1 for size in self.layers):
            raise ConfigurationError(f"Layer sizes must be positive, got {list(self.layers)}")
        low, high = self.weight_range
        if low > high:
            raise ConfigurationError(f"weight_range must satisfy low <= high, got {self.weight_range}")
        for name in (self.activation, self.input_activation):
            ACTIVATIONS.get(name)

    @classmethod
    def from_mapping(cls, raw: Mapping[str, object]) -> "NetworkConfig":
        if "layers" not in raw:
            raise ConfigurationError("Network config missing required key: layers")
        known = {
            "layers",
            "activation",
            "input_activation",
            "use_bias",
            "weight_range",
            "seed",
            "network_type",
            "label",
        }
        try:
            kwargs: Dict[str, object] = {
                "layers": tuple(int(size) for size in raw["layers"]),  # type: ignore[union-attr]
                "activation": str(raw.get("activation", "sigmoid")),
                "input_activation": str(raw.get("input_activation", "identity")),
                "use_bias": bool(raw.get("use_bias", True)),
                "weight_range": tuple(
                    float(v) for v in raw.get("weight_range", DEFAULT_WEIGHT_RANGE)  # type: ignore[union-attr]
                ),
                "network_type": NetworkType(
                    raw.get("network_type", NetworkType.MULTI_LAYER_PERCEPTRON.value)
                ),
                "seed": None if raw.get("seed") is None else int(raw["seed"]),  # type: ignore[arg-type]
            }
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"Invalid network config: {exc}") from exc
        if len(kwargs["weight_range"]) != 2:  # type: ignore[arg-type]
            raise ConfigurationError("weight_range must have exactly two values")
        if raw.get("label") is not None:
            kwargs["label"] = str(raw["label"])
        kwargs["extra"] = {k: v for k, v in raw.items() if k not in known}
        return cls(**kwargs)  # type: ignore[arg-type]

    def to_mapping(self) -> Dict[str, object]:
        data = asdict(self)
        data["layers"] = list(self.layers)
        data["weight_range"] = list(self.weight_range)
        data["network_type"] = self.network_type.value
        extra = data.pop("extra")
        data.update(extra)
        return data


_PRESETS: Dict[str, Mapping[str, object]] = {
    "identity": {
        "layers": [1, 1],
        "activation": "identity",
        "use_bias": False,
        "weight_range": [1.0, 1.0],
        "network_type": "custom",
        "label": "identity",
    },
    "perceptron-2-1": {
        "layers": [2, 1],
        "activation": "step",
        "use_bias": True,
        "seed": 0,
        "network_type": "perceptron",
        "label": "perceptron-2-1",
    },
    "xor-mlp": {
        "layers": [2, 3, 1],
        "activation": "sigmoid",
        "use_bias": True,
        "weight_range": [-0.7, 0.7],
        "seed": 7,
        "network_type": "multi_layer_perceptron",
        "label": "xor-mlp",
    },
}


def presets() -> Mapping[str, Mapping[str, object]]:
    return {name: deepcopy(cfg) for name, cfg in _PRESETS.items()}


def load_preset(name: str) -> NetworkConfig:
    try:
        raw = deepcopy(_PRESETS[name])
    except KeyError as exc:
        available = ", ".join(sorted(_PRESETS))
        raise ConfigurationError(f"Unknown preset {name!r}. Available presets: {available}") from exc
    return NetworkConfig.from_mapping(raw)


def _read_config_file(path: Path) -> Mapping[str, object]:
    text = path.read_text()
    suffix = path.suffix.lower()
    if suffix in {".yaml", ".yml"}:
        import yaml

        data = yaml.safe_load(text) or {}
    elif suffix == ".json":
        data = json.loads(text or "{}")
    else:
        raise ConfigurationError(f"Unsupported config file type: {path.suffix}")

    if not isinstance(data, Mapping):
        raise ConfigurationError(f"Config {path.name} must decode to a mapping")
    return data


def load_config(path: str | Path) -> NetworkConfig:
    """Read a JSON or YAML network config.

    The file may hold the config at top level or under a ``network`` key.
    """

    data = _read_config_file(Path(path))
    section = data.get("network", data)
    if not isinstance(section, Mapping):
        raise ConfigurationError("'network' section must be a mapping")
    return NetworkConfig.from_mapping(section)


__all__ = [
    "DEFAULT_LOG_LEVEL",
    "LOG_LEVEL_ENV",
    "NetworkConfig",
    "load_config",
    "load_preset",
    "log_level_from_env",
    "presets",
]
