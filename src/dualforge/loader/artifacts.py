"""Loading compiled artifact sets from compiler output on disk."""

from __future__ import annotations

import json
from pathlib import Path

from dualforge.models.artifacts import ArtifactSet, artifact_from_json, artifact_set_from_json


def load_artifact_set(path: Path) -> ArtifactSet:
    """Load an ArtifactSet from a JSON file or an output directory.

    A file must map contract names to artifact entries. A directory is
    searched recursively for ``<Contract>.json`` artifacts, each named by
    its file stem.

    Raises:
        FileNotFoundError: If path does not exist.
        ValueError: If the document is malformed or a directory holds two
            artifacts with the same contract name.
    """
    if not path.exists():
        raise FileNotFoundError(f"artifact path not found: {path}")
    if path.is_file():
        return artifact_set_from_json(path.read_text(encoding="utf-8"))

    artifacts = {}
    for file in sorted(path.rglob("*.json")):
        name = file.stem
        if name in artifacts:
            raise ValueError(f"duplicate artifact name {name!r} in {path}")
        artifacts[name] = artifact_from_json(json.loads(file.read_text(encoding="utf-8")), name)
    return ArtifactSet(artifacts)
