"""Manifest describing what a training run produced and how."""

from __future__ import annotations

import hashlib
import json
import platform
import subprocess
from datetime import datetime, timezone
from importlib import metadata
from pathlib import Path
from typing import Dict, Mapping

from ..core.types import NetworkConfig

_TRACKED_PACKAGES = ("numpy", "pandas", "matplotlib", "PyYAML")


def _source_revision() -> str | None:
    try:
        out = subprocess.run(
            ["git", "describe", "--always", "--dirty"],
            capture_output=True,
            text=True,
            check=True,
        )
    except (OSError, subprocess.CalledProcessError):  # pragma: no cover - no git checkout
        return None
    return out.stdout.strip() or None


def _package_versions() -> Dict[str, str | None]:
    versions: Dict[str, str | None] = {}
    for name in _TRACKED_PACKAGES:
        try:
            versions[name] = metadata.version(name)
        except metadata.PackageNotFoundError:
            versions[name] = None
    return versions


def _file_digest(path: Path) -> str:
    digest = hashlib.sha256()
    with path.open("rb") as handle:
        for chunk in iter(lambda: handle.read(1 << 16), b""):
            digest.update(chunk)
    return digest.hexdigest()


def describe_network(config: NetworkConfig) -> Dict[str, object]:
    return {
        "layer_sizes": config.layer_sizes,
        "hidden_layers": config.layer_sizes[1:-1],
        "parameters": config.parameter_count(),
    }


def write_manifest(
    path: str | Path,
    *,
    config: Mapping[str, object],
    dataset_provenance: Mapping[str, object],
    network: NetworkConfig | None = None,
    results: Mapping[str, object] | None = None,
    outputs: Mapping[str, str | Path | None] | None = None,
) -> str:
    """Write ``manifest.json`` for a run and return its path.

    ``outputs`` maps artifact names (snapshot, plot, ...) to files; each file
    that exists is recorded with its SHA-256 so a stored snapshot can be
    matched to the run that wrote it.
    """

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    recorded_outputs: Dict[str, Dict[str, str]] = {}
    for name, output in (outputs or {}).items():
        if output is None:
            continue
        output_path = Path(output)
        if output_path.is_file():
            recorded_outputs[name] = {
                "path": str(output_path),
                "sha256": _file_digest(output_path),
            }

    manifest = {
        "created": datetime.now(timezone.utc).isoformat(timespec="seconds"),
        "revision": _source_revision(),
        "config": config,
        "dataset": dict(dataset_provenance),
        "network": describe_network(network) if network is not None else None,
        "results": dict(results or {}),
        "outputs": recorded_outputs,
        "environment": {
            "python": platform.python_version(),
            "packages": _package_versions(),
        },
    }
    path.write_text(json.dumps(manifest, indent=2, sort_keys=True))
    return str(path)


__all__ = ["describe_network", "write_manifest"]
