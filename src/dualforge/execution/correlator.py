"""Pairs EVM and zk compiled artifacts into DualCompiledContract records.

Correlation is best effort: artifacts whose payloads do not resolve, or
whose logical name has no counterpart on the other backend, are skipped.
An empty or partial result is valid and it is up to the caller to decide
whether a sparse correlation is acceptable.
"""

from __future__ import annotations

import logging

from pydantic import ValidationError

from dualforge.models.artifacts import (
    ArtifactSet,
    DualCompiledContract,
    PackedEraBytecode,
    keccak256,
)

logger = logging.getLogger(__name__)

NAME_SEPARATOR = "."


def logical_name(name: str, separator: str = NAME_SEPARATOR) -> str:
    """Return the part of an artifact name before the first separator."""
    return name.split(separator, 1)[0]


def _evm_lookup(evm: ArtifactSet, separator: str) -> dict[str, tuple[bytes, bytes]]:
    """Map logical name -> (creation, deployed) for fully resolved EVM artifacts."""
    lookup: dict[str, tuple[bytes, bytes]] = {}
    for name, artifact in evm.artifacts():
        bytecode = artifact.get_bytecode_bytes()
        deployed = artifact.get_deployed_bytecode_bytes()
        if bytecode is None or deployed is None:
            logger.debug("skipping EVM artifact %s: bytecode does not resolve", name)
            continue
        lookup[logical_name(name, separator)] = (bytecode, deployed)
    return lookup


def correlate(
    evm: ArtifactSet,
    zk: ArtifactSet,
    separator: str = NAME_SEPARATOR,
) -> list[DualCompiledContract]:
    """Correlate two artifact sets by logical contract name.

    Args:
        evm: Artifacts from the standard EVM compiler.
        zk: Artifacts from the zk compiler; names may carry a qualifying
            suffix after ``separator``.
        separator: Character separating the logical name from its suffix.

    Returns:
        One record per logical name resolved on both sides. Order carries
        no meaning.
    """
    solc_bytecodes = _evm_lookup(evm, separator)

    dual_compiled_contracts: list[DualCompiledContract] = []
    seen: set[str] = set()
    for name, artifact in zk.artifacts():
        deployed = artifact.get_deployed_bytecode_bytes()
        if deployed is None:
            logger.debug("skipping zk artifact %s: deployed bytecode does not resolve", name)
            continue

        contract_name = logical_name(name, separator)
        pair = solc_bytecodes.get(contract_name)
        if pair is None or contract_name in seen:
            continue

        try:
            packed = PackedEraBytecode.from_bytes(deployed)
        except ValidationError as exc:
            logger.warning("skipping zk artifact %s: unreadable packed bytecode (%s)", name, exc)
            continue

        solc_bytecode, solc_deployed_bytecode = pair
        seen.add(contract_name)
        dual_compiled_contracts.append(
            DualCompiledContract(
                name=contract_name,
                zk_bytecode_hash=packed.bytecode_hash(),
                zk_deployed_bytecode=packed.code(),
                evm_bytecode_hash=keccak256(solc_deployed_bytecode),
                evm_bytecode=solc_bytecode,
                evm_deployed_bytecode=solc_deployed_bytecode,
            )
        )

    logger.debug(
        "correlated %d of %d zk artifacts against %d EVM artifacts",
        len(dual_compiled_contracts),
        len(zk),
        len(solc_bytecodes),
    )
    return dual_compiled_contracts


class BytecodeCorrelator:
    """Reusable correlator bound to a naming convention."""

    def __init__(self, separator: str = NAME_SEPARATOR) -> None:
        self.separator = separator

    def correlate(self, evm: ArtifactSet, zk: ArtifactSet) -> list[DualCompiledContract]:
        return correlate(evm, zk, self.separator)
