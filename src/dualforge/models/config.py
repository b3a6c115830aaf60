"""Harness configuration models for dualforge.

Captures fuzz/invariant parameters, RPC endpoints, filesystem
permissions, and the harness-level settings loaded from dualforge.yaml.
"""

from __future__ import annotations

import os
import re
from collections.abc import Iterable
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, model_validator

# Default sender used by forge-style test runners
DEFAULT_SENDER = "0x1804c8AB1F12E6bbf3894d4083f33e07309d1f38"

_ENV_REFERENCE = re.compile(r"\$\{\s*([A-Za-z_][A-Za-z0-9_]*)\s*\}")


class UnresolvedEnvVarError(Exception):
    """Raised when an RPC endpoint references an unset environment variable.

    Attributes:
        alias: The endpoint alias being resolved, if known.
        var: Name of the missing environment variable.
    """

    def __init__(self, var: str, alias: str | None = None) -> None:
        self.var = var
        self.alias = alias
        target = f" for endpoint '{alias}'" if alias else ""
        super().__init__(f"Environment variable `{var}`{target} is not set")


class FuzzDictionaryConfig(BaseModel):
    """Bias applied to randomized input generation from observed values."""

    model_config = {"extra": "forbid", "frozen": True}

    dictionary_weight: int = Field(default=40, ge=0, le=100)
    include_storage: bool = True
    include_push_bytes: bool = True
    max_fuzz_dictionary_addresses: int = 10_000
    max_fuzz_dictionary_values: int = 10_000


class FuzzConfig(BaseModel):
    """Fuzz test parameters. A None seed means fresh randomness each run."""

    model_config = {"extra": "forbid", "frozen": True}

    runs: int = Field(default=256, ge=0)
    max_test_rejects: int = 65536
    seed: int | None = None
    dictionary: FuzzDictionaryConfig = Field(default_factory=FuzzDictionaryConfig)


class InvariantConfig(BaseModel):
    """Invariant test parameters."""

    model_config = {"extra": "forbid", "frozen": True}

    runs: int = Field(default=256, ge=0)
    depth: int = Field(default=15, ge=1)
    fail_on_revert: bool = False
    call_override: bool = False
    dictionary: FuzzDictionaryConfig = Field(
        default_factory=lambda: FuzzDictionaryConfig(dictionary_weight=80)
    )
    shrink_sequence: bool = True
    shrink_run_limit: int = 2**18


class TestOptions(BaseModel):
    """Fuzz and invariant options handed to every test execution."""

    __test__ = False

    model_config = {"extra": "forbid", "frozen": True}

    fuzz: FuzzConfig = Field(default_factory=FuzzConfig)
    invariant: InvariantConfig = Field(default_factory=InvariantConfig)


class RpcEndpoint(BaseModel):
    """Either a literal URL or a ``${VAR}`` reference resolved at connection time."""

    model_config = {"extra": "forbid", "frozen": True}

    url: str | None = None
    env: str | None = None

    @model_validator(mode="after")
    def _exactly_one(self) -> RpcEndpoint:
        if (self.url is None) == (self.env is None):
            raise ValueError("RPC endpoint needs exactly one of 'url' or 'env'")
        return self

    @classmethod
    def from_url(cls, url: str) -> RpcEndpoint:
        return cls(url=url)

    @classmethod
    def from_env(cls, reference: str) -> RpcEndpoint:
        return cls(env=reference)

    def resolve(self, alias: str | None = None) -> str:
        """Return the endpoint URL, interpolating environment references.

        Raises:
            UnresolvedEnvVarError: If a referenced variable is not set.
        """
        if self.url is not None:
            return self.url

        def _sub(match: re.Match[str]) -> str:
            var = match.group(1)
            value = os.environ.get(var)
            if value is None:
                raise UnresolvedEnvVarError(var, alias)
            return value

        return _ENV_REFERENCE.sub(_sub, self.env or "")


class RpcEndpoints(BaseModel):
    """Alias to endpoint table."""

    model_config = {"extra": "forbid", "frozen": True}

    endpoints: dict[str, RpcEndpoint] = Field(default_factory=dict)

    @classmethod
    def new(cls, entries: Iterable[tuple[str, RpcEndpoint]]) -> RpcEndpoints:
        return cls(endpoints=dict(entries))

    def aliases(self) -> list[str]:
        return list(self.endpoints)

    def merged(self, other: RpcEndpoints) -> RpcEndpoints:
        """Return a table with other's entries added, replacing same-named aliases."""
        return RpcEndpoints(endpoints={**self.endpoints, **other.endpoints})

    def get(self, alias: str) -> RpcEndpoint | None:
        return self.endpoints.get(alias)

    def resolve(self, alias: str) -> str:
        """Resolve one alias to a URL.

        Raises:
            KeyError: If the alias is unknown.
            UnresolvedEnvVarError: If its environment reference is unset.
        """
        return self.endpoints[alias].resolve(alias)


class PathPermission(BaseModel):
    """Access granted to one filesystem path."""

    model_config = {"extra": "forbid", "frozen": True}

    access: Literal["read", "write", "read-write", "none"]
    path: Path

    @classmethod
    def read(cls, path: str | Path) -> PathPermission:
        return cls(access="read", path=Path(path))

    @classmethod
    def write(cls, path: str | Path) -> PathPermission:
        return cls(access="write", path=Path(path))

    @classmethod
    def read_write(cls, path: str | Path) -> PathPermission:
        return cls(access="read-write", path=Path(path))

    @classmethod
    def none(cls, path: str | Path) -> PathPermission:
        return cls(access="none", path=Path(path))


class FsPermissions(BaseModel):
    """Ordered permission rules consulted by the sandboxing layer."""

    model_config = {"extra": "forbid", "frozen": True}

    permissions: list[PathPermission] = Field(default_factory=list)

    @classmethod
    def new(cls, permissions: Iterable[PathPermission]) -> FsPermissions:
        return cls(permissions=list(permissions))

    def joined(self, root: Path) -> FsPermissions:
        """Return a copy with relative paths anchored at root."""
        return FsPermissions(
            permissions=[
                p if p.path.is_absolute() else p.model_copy(update={"path": root / p.path})
                for p in self.permissions
            ]
        )


class EvmOpts(BaseModel):
    """Execution environment descriptor handed to the environment resolver."""

    model_config = {"extra": "forbid", "frozen": True}

    sender: str = DEFAULT_SENDER
    chain_id: int | None = 31337
    fork_url: str | None = None
    fork_block_number: int | None = None
    gas_limit: int = 2**63 - 1
    verbosity: int = 0


class HarnessConfig(BaseModel):
    """Harness-level configuration loaded from dualforge.yaml."""

    model_config = {"extra": "forbid"}

    root: Path = Field(default_factory=Path.cwd)
    sender: str = DEFAULT_SENDER
    fs_permissions: FsPermissions = Field(default_factory=FsPermissions)
    rpc_endpoints: RpcEndpoints = Field(default_factory=RpcEndpoints)
    allow_paths: list[Path] = Field(default_factory=list)
    verbosity: int = Field(default=0, ge=0, le=5)

    @classmethod
    def with_root(cls, root: Path) -> HarnessConfig:
        return cls(root=root)


def find_project_root(start: Path | None = None) -> Path:
    """Walk up from start (default: cwd) looking for dualforge.yaml.

    Returns:
        The first directory containing dualforge.yaml, or cwd if none does.
    """
    current = (start or Path.cwd()).resolve()
    if current.is_file():
        current = current.parent
    while current != current.parent:
        if (current / "dualforge.yaml").exists():
            return current
        current = current.parent
    return Path.cwd()


def load_harness_config(project_root: Path | None = None) -> HarnessConfig:
    """Load HarnessConfig from dualforge.yaml. Returns defaults if not found.

    Args:
        project_root: Directory holding dualforge.yaml. If None,
            uses find_project_root() to locate it.

    Returns:
        Validated HarnessConfig with ``root`` set to the project root.
    """
    if project_root is None:
        project_root = find_project_root()
    config_path = project_root / "dualforge.yaml"
    if not config_path.exists():
        return HarnessConfig.with_root(project_root)
    import yaml

    raw = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    if raw is None:
        return HarnessConfig.with_root(project_root)
    raw.setdefault("root", str(project_root))
    return HarnessConfig.model_validate(raw)
