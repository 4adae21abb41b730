"""Command line entry point for building, running and saving networks."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Iterable, List

from neurograph import config as ng_config
from neurograph.core.errors import NeurographError
from neurograph.core.network import NeuralNetwork
from neurograph.factory import build_network
from neurograph.persistence import load_network, save_network

logger = logging.getLogger("neurograph.cli")


def _format_result(network: NeuralNetwork, output: List[float] | None) -> str:
    payload = {
        "network": str(network),
        "label": network.label,
        "type": network.network_type.value,
        "layers": [len(layer) for layer in network.layers],
        "inputs": len(network.input_neurons),
        "outputs": len(network.output_neurons),
    }
    if output is not None:
        payload["output"] = output
    return json.dumps(payload, sort_keys=True)


def _parse_vector(text: str) -> List[float]:
    try:
        return [float(part) for part in text.split(",") if part.strip()]
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Expected comma-separated numbers, got {text!r}") from exc


def parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    preset_names = sorted(ng_config.presets().keys())
    parser = argparse.ArgumentParser(description=__doc__)
    source = parser.add_mutually_exclusive_group()
    source.add_argument(
        "--preset",
        choices=preset_names,
        default="xor-mlp",
        help="Preset network to build",
    )
    source.add_argument("--config", type=Path, help="JSON/YAML network config")
    source.add_argument("--load", type=Path, help="Load a saved network instead of building one")
    parser.add_argument(
        "--input",
        type=_parse_vector,
        help="Comma-separated input vector; runs one forward pass",
    )
    parser.add_argument(
        "--randomize", action="store_true", help="Re-randomize all weights before running"
    )
    parser.add_argument("--seed", type=int, help="Seed used by --randomize")
    parser.add_argument("--save", type=Path, help="Save the resulting network to this path")
    parser.add_argument(
        "--list-presets", action="store_true", help="List available presets and exit"
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help=f"Logging level (defaults to ${ng_config.LOG_LEVEL_ENV} or "
        f"{ng_config.DEFAULT_LOG_LEVEL})",
    )
    return parser.parse_args(argv)


def configure_logging(level: str | None = None) -> None:
    level_name = (level or ng_config.log_level_from_env()).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.WARNING),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def _resolve_network(args: argparse.Namespace) -> NeuralNetwork:
    if args.load:
        return load_network(args.load)
    if args.config:
        return build_network(ng_config.load_config(args.config))
    return build_network(ng_config.load_preset(args.preset))


def main(argv: Iterable[str] | None = None) -> None:
    args = parse_args(argv)
    configure_logging(args.log_level)

    if args.list_presets:
        for name in sorted(ng_config.presets().keys()):
            print(name)
        raise SystemExit(0)

    try:
        network = _resolve_network(args)
        if args.randomize:
            network.randomize_weights(seed=args.seed)

        output = None
        if args.input is not None:
            network.set_input(args.input)
            network.calculate()
            output = network.get_output()

        if args.save:
            save_network(network, args.save)
    except NeurographError as exc:
        logger.error("%s", exc)
        raise SystemExit(f"error: {exc}") from exc

    print(_format_result(network, output))


if __name__ == "__main__":
    main()
