"""Versioned save/load of whole networks and of their weight vectors.

A saved network is a pickled envelope::

    {"magic": "neurograph-network", "version": FORMAT_VERSION, "network": net}

Readers reject any other tag or version with
:class:`~neurograph.core.errors.IncompatibleFormatError`. Weight files are
``numpy.savez_compressed`` archives holding the flat weight vector.
"""

from __future__ import annotations

import logging
import os
import pickle
import tempfile
from pathlib import Path
from typing import Mapping

import numpy as np

from .core.errors import (
    IncompatibleFormatError,
    NetworkNotFoundError,
    PersistenceError,
)
from .core.network import NeuralNetwork

logger = logging.getLogger(__name__)

FORMAT_VERSION = 1
MAGIC = "neurograph-network"

_DECODE_ERRORS = (
    pickle.UnpicklingError,
    EOFError,
    AttributeError,
    ImportError,
    IndexError,
    TypeError,
    ValueError,
)


def _atomic_write(path: Path, write) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    tmp = Path(tmp_name)
    try:
        with os.fdopen(fd, "wb") as handle:
            write(handle)
        os.replace(tmp, path)
    finally:
        tmp.unlink(missing_ok=True)


def save_network(network: NeuralNetwork, path: str | Path) -> Path:
    """Serialise ``network`` to ``path``, replacing any existing file.

    The target is only replaced once the whole file has been written, so a
    failed save leaves the previous file (if any) intact.
    """

    path = Path(path)
    envelope = {"magic": MAGIC, "version": FORMAT_VERSION, "network": network}
    try:
        _atomic_write(
            path,
            lambda handle: pickle.dump(envelope, handle, protocol=pickle.HIGHEST_PROTOCOL),
        )
    except OSError as exc:
        logger.error("Failed to save network to %s: %s", path, exc)
        raise PersistenceError(f"Failed to save network to {path}: {exc}") from exc
    except (pickle.PicklingError, AttributeError, TypeError) as exc:
        logger.exception("Network could not be serialised; %s was not written", path)
        raise PersistenceError(f"Network could not be serialised: {exc}") from exc
    logger.info("Saved network %s to %s", network, path)
    return path


def load_network(path: str | Path) -> NeuralNetwork:
    """Read a network written by :func:`save_network`."""

    path = Path(path)
    if not path.exists():
        raise NetworkNotFoundError(f"Cannot find file: {path}")
    try:
        with path.open("rb") as handle:
            envelope = pickle.load(handle)
    except OSError as exc:
        logger.error("Failed to read network from %s: %s", path, exc)
        raise PersistenceError(f"Failed to read network from {path}: {exc}") from exc
    except _DECODE_ERRORS as exc:
        raise IncompatibleFormatError(f"{path} is not a readable network file: {exc}") from exc

    if not isinstance(envelope, Mapping) or envelope.get("magic") != MAGIC:
        raise IncompatibleFormatError(f"{path} is not a neurograph network file")
    version = envelope.get("version")
    if version != FORMAT_VERSION:
        raise IncompatibleFormatError(
            f"{path} has format version {version!r}; this reader expects {FORMAT_VERSION}"
        )
    network = envelope.get("network")
    if not isinstance(network, NeuralNetwork):
        raise IncompatibleFormatError(f"{path} does not contain a NeuralNetwork")
    logger.info("Loaded network %s from %s", network, path)
    return network


def save_weights(network: NeuralNetwork, path: str | Path) -> Path:
    """Write the network's flat weight vector to a compressed npz archive."""

    path = Path(path)
    weights = network.get_weights()
    try:
        _atomic_write(
            path,
            lambda handle: np.savez_compressed(
                handle, weights=weights, version=np.array(FORMAT_VERSION)
            ),
        )
    except OSError as exc:
        logger.error("Failed to save weights to %s: %s", path, exc)
        raise PersistenceError(f"Failed to save weights to {path}: {exc}") from exc
    logger.info("Saved %d weights to %s", weights.shape[0], path)
    return path


def load_weights(network: NeuralNetwork, path: str | Path) -> None:
    """Assign weights saved by :func:`save_weights` to ``network``.

    The weight count must match the network's connection count.
    """

    path = Path(path)
    if not path.exists():
        raise NetworkNotFoundError(f"Cannot find file: {path}")
    try:
        archive = np.load(path, allow_pickle=False)
    except OSError as exc:
        logger.error("Failed to read weights from %s: %s", path, exc)
        raise PersistenceError(f"Failed to read weights from {path}: {exc}") from exc
    except (ValueError, pickle.UnpicklingError) as exc:
        raise IncompatibleFormatError(f"{path} is not a readable weight file: {exc}") from exc
    if not hasattr(archive, "files"):
        raise IncompatibleFormatError(f"{path} is not a neurograph weight file")
    with archive:
        if "weights" not in archive.files or "version" not in archive.files:
            raise IncompatibleFormatError(f"{path} is not a neurograph weight file")
        version = int(archive["version"])
        weights = archive["weights"]
    if version != FORMAT_VERSION:
        raise IncompatibleFormatError(
            f"{path} has format version {version!r}; this reader expects {FORMAT_VERSION}"
        )
    network.set_weights(weights)


__all__ = [
    "FORMAT_VERSION",
    "MAGIC",
    "load_network",
    "load_weights",
    "save_network",
    "save_weights",
]
