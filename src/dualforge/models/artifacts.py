"""Compiled artifact models shared by both bytecode backends.

An ArtifactSet is produced once per compilation and then shared by
reference between every runner built from it, so all models here are
frozen.
"""

from __future__ import annotations

import json
import re
from collections.abc import Iterator, Mapping
from typing import Any

from Crypto.Hash import keccak
from pydantic import BaseModel, Field, field_validator

# Solidity library placeholder left in unlinked bytecode, e.g. __$1d3b...$__
LIBRARY_PLACEHOLDER = re.compile(r"__\$[0-9a-fA-F]{34}\$__")


def keccak256(data: bytes) -> bytes:
    """Return the 32-byte keccak256 digest of data."""
    k = keccak.new(digest_bits=256)
    k.update(data)
    return k.digest()


def _strip_hex_prefix(value: str) -> str:
    return value[2:] if value[:2] in ("0x", "0X") else value


class BytecodeObject(BaseModel):
    """A hex bytecode object as emitted by the compiler.

    The object is "unlinked" while it still contains library placeholders;
    only linked objects resolve to raw bytes.
    """

    model_config = {"frozen": True, "extra": "forbid"}

    object: str = ""

    def is_unlinked(self) -> bool:
        return LIBRARY_PLACEHOLDER.search(self.object) is not None

    def as_bytes(self) -> bytes | None:
        """Return the raw payload, or None if the object does not resolve."""
        if self.is_unlinked():
            return None
        try:
            return bytes.fromhex(_strip_hex_prefix(self.object))
        except ValueError:
            return None


class CompiledArtifact(BaseModel):
    """One compiled contract: creation/deployed payloads plus its ABI surface."""

    model_config = {"frozen": True, "extra": "forbid"}

    bytecode: BytecodeObject | None = None
    deployed_bytecode: BytecodeObject | None = None
    abi_functions: tuple[str, ...] = ()
    source_path: str | None = None

    def get_bytecode_bytes(self) -> bytes | None:
        return self.bytecode.as_bytes() if self.bytecode is not None else None

    def get_deployed_bytecode_bytes(self) -> bytes | None:
        if self.deployed_bytecode is None:
            return None
        return self.deployed_bytecode.as_bytes()


class ArtifactSet(Mapping[str, CompiledArtifact]):
    """Immutable mapping of contract name to compiled artifact."""

    __slots__ = ("_artifacts",)

    def __init__(self, artifacts: Mapping[str, CompiledArtifact] | None = None) -> None:
        self._artifacts: dict[str, CompiledArtifact] = dict(artifacts or {})

    def __getitem__(self, name: str) -> CompiledArtifact:
        return self._artifacts[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._artifacts)

    def __len__(self) -> int:
        return len(self._artifacts)

    def __repr__(self) -> str:
        return f"ArtifactSet({sorted(self._artifacts)!r})"

    def artifacts(self) -> Iterator[tuple[str, CompiledArtifact]]:
        """Yield (name, artifact) pairs in name order."""
        for name in sorted(self._artifacts):
            yield name, self._artifacts[name]


class PackedEraBytecode(BaseModel):
    """Deployed payload of a zk-backend artifact.

    The zk compiler ships the deployed bytecode as a JSON document carrying
    the precomputed bytecode hash next to the hex code itself.
    """

    model_config = {"frozen": True}

    hash: str
    bytecode: str
    factory_deps: list[str] = Field(default_factory=list)

    @field_validator("hash")
    @classmethod
    def _check_hash(cls, value: str) -> str:
        raw = _strip_hex_prefix(value)
        if len(raw) != 64:
            raise ValueError(f"bytecode hash must be 32 bytes, got {len(raw) // 2}")
        bytes.fromhex(raw)
        return value

    @field_validator("bytecode")
    @classmethod
    def _check_bytecode(cls, value: str) -> str:
        bytes.fromhex(_strip_hex_prefix(value))
        return value

    @classmethod
    def from_bytes(cls, payload: bytes) -> PackedEraBytecode:
        """Decode the packed JSON payload.

        Raises:
            pydantic.ValidationError: If the payload is not a packed document.
        """
        return cls.model_validate_json(payload)

    def bytecode_hash(self) -> bytes:
        return bytes.fromhex(_strip_hex_prefix(self.hash))

    def code(self) -> bytes:
        return bytes.fromhex(_strip_hex_prefix(self.bytecode))


class DualCompiledContract(BaseModel):
    """A contract resolved on both backends, ready for differential runs."""

    model_config = {"frozen": True}

    name: str
    zk_bytecode_hash: bytes
    zk_deployed_bytecode: bytes
    evm_bytecode_hash: bytes
    evm_bytecode: bytes
    evm_deployed_bytecode: bytes

    def summary(self) -> dict[str, Any]:
        """Hex-encoded view used by the CLI's JSON output."""
        return {
            "name": self.name,
            "zk_bytecode_hash": "0x" + self.zk_bytecode_hash.hex(),
            "evm_bytecode_hash": "0x" + self.evm_bytecode_hash.hex(),
            "zk_deployed_size": len(self.zk_deployed_bytecode),
            "evm_deployed_size": len(self.evm_deployed_bytecode),
        }


def artifact_from_json(raw: Any, name: str = "<artifact>") -> CompiledArtifact:
    """Build a CompiledArtifact from a compiler output entry.

    Accepts both ``{"bytecode": {"object": ...}}`` and a bare hex string
    for each payload, and reads function names out of the ``abi`` list.

    Raises:
        ValueError: If the entry, a payload, or the abi has the wrong shape.
    """
    if not isinstance(raw, Mapping):
        raise ValueError(f"artifact {name!r} must be a JSON object, got {type(raw).__name__}")

    def _object(key: str) -> BytecodeObject | None:
        value = raw.get(key)
        if value is None:
            return None
        if isinstance(value, Mapping):
            value = value.get("object")
            if value is None:
                return None
        if not isinstance(value, str):
            raise ValueError(f"artifact {name!r}: {key} must be a hex string or {{object: hex}}")
        return BytecodeObject(object=value)

    abi = raw.get("abi", [])
    if not isinstance(abi, list) or not all(isinstance(entry, Mapping) for entry in abi):
        raise ValueError(f"artifact {name!r}: abi must be a list of objects")
    functions = tuple(
        entry["name"]
        for entry in abi
        if entry.get("type") == "function" and isinstance(entry.get("name"), str)
    )

    source_path = raw.get("sourcePath")
    if source_path is not None and not isinstance(source_path, str):
        raise ValueError(f"artifact {name!r}: sourcePath must be a string")

    return CompiledArtifact(
        bytecode=_object("bytecode"),
        deployed_bytecode=_object("deployedBytecode"),
        abi_functions=functions,
        source_path=source_path,
    )


def artifact_set_from_json(source: str | bytes) -> ArtifactSet:
    """Parse a JSON document mapping contract names to artifact entries."""
    data = json.loads(source)
    if not isinstance(data, dict):
        raise ValueError("artifact document must be a JSON object keyed by contract name")
    return ArtifactSet({name: artifact_from_json(entry, name) for name, entry in data.items()})
