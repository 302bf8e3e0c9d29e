"""Injection of Vault secrets into application configuration trees.

A configuration tree is any nesting of dicts and lists. Leaves that are
secret references are replaced, in place, with the value of ``key`` in
the secret stored at ``ref``. A reference is either a ``SecretRef`` or a
mapping with exactly the keys ``ref`` and ``key``, which is how
references look in YAML or JSON files:

    database:
      password: {ref: kv/app/db, key: password}

Injection is all-or-nothing: every reference is resolved before the tree
is touched, and a single failure leaves the tree exactly as it was.
"""

import asyncio
import copy
import json
from collections.abc import Hashable, Mapping, MutableMapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from ..core.exceptions import ConfigInjectionError, HttpError, VaultClientError
from ..core.logging import get_logger, log_context
from .operations import SecretOperations, normalize_path

logger = get_logger(__name__)

Location = tuple[Hashable, ...]


@dataclass(frozen=True)
class SecretRef:
    """Reference to one field of a Vault secret."""

    ref: str
    key: str


def as_secret_ref(value: Any) -> SecretRef | None:
    """Return the reference a config value stands for, or None for ordinary values."""
    if isinstance(value, SecretRef):
        return value
    if (
        isinstance(value, Mapping)
        and set(value.keys()) == {"ref", "key"}
        and isinstance(value["ref"], str)
        and isinstance(value["key"], str)
    ):
        return SecretRef(ref=value["ref"], key=value["key"])
    return None


def find_secret_refs(node: Any, location: Location = ()) -> list[tuple[Location, SecretRef]]:
    """Walk ``node`` depth-first and return every reference with its location."""
    ref = as_secret_ref(node)
    if ref is not None:
        return [(location, ref)]

    found: list[tuple[Location, SecretRef]] = []
    if isinstance(node, Mapping):
        for key, child in node.items():
            found.extend(find_secret_refs(child, (*location, key)))
    elif isinstance(node, list):
        for index, child in enumerate(node):
            found.extend(find_secret_refs(child, (*location, index)))
    return found


def load_secret_refs(path: str | Path) -> Any:
    """Load an overrides tree from a YAML or JSON file."""
    path = Path(path)
    with path.open(encoding="utf-8") as f:
        if path.suffix == ".json":
            return json.load(f)
        return yaml.safe_load(f) or {}


class ConfigInjector:
    """Resolves secret references in configuration trees."""

    def __init__(self, operations: SecretOperations) -> None:
        self.operations = operations

    async def fill_node_config(
        self,
        config: MutableMapping[str, Any],
        overrides: Mapping[str, Any] | None = None,
    ) -> MutableMapping[str, Any]:
        """Replace secret references with their values.

        Without ``overrides`` the references inside ``config`` are replaced
        where they stand. With ``overrides``, the references are read from
        that tree instead and each resolved value is written into ``config``
        at the same key path, adding missing mappings at the end of their
        parent.

        ``config`` is mutated and also returned for convenience.

        Raises:
            ConfigInjectionError: If any reference cannot be resolved or
                placed; ``config`` is left unchanged
        """
        source = config if overrides is None else overrides
        refs = find_secret_refs(source)
        if not refs:
            logger.debug("No secret references in config")
            return config

        with log_context(operation="fill_node_config"):
            _check_placement(config, refs)

            values = await self._resolve(refs)

            # Each leaf gets its own copy; deduplicated reads share one payload
            for location, _ in refs:
                _assign(config, location, copy.deepcopy(values[location]))

            logger.info(
                "Injected secrets into config",
                references=len(refs),
                paths=len({normalize_path(ref.ref) for _, ref in refs}),
            )
        return config

    async def _resolve(
        self, refs: list[tuple[Location, SecretRef]]
    ) -> dict[Location, Any]:
        paths = sorted({normalize_path(ref.ref) for _, ref in refs})
        results = await asyncio.gather(*(self._fetch(path) for path in paths))
        secrets = dict(zip(paths, results, strict=True))

        values: dict[Location, Any] = {}
        failures: list[dict[str, Any]] = []
        for location, ref in refs:
            data = secrets[normalize_path(ref.ref)]
            if isinstance(data, VaultClientError):
                failures.append(_failure(ref, _describe(data)))
            elif not isinstance(data, Mapping) or ref.key not in data:
                failures.append(_failure(ref, "key not found"))
            else:
                values[location] = data[ref.key]

        if failures:
            logger.error("Secret injection failed", failures=failures)
            raise ConfigInjectionError(failures)
        return values

    async def _fetch(self, path: str) -> Any:
        try:
            response = await self.operations.read(path)
        except VaultClientError as e:
            return e
        return response.get_data()


def _failure(ref: SecretRef, reason: str) -> dict[str, Any]:
    return {"path": ref.ref, "key": ref.key, "reason": reason}


def _describe(error: VaultClientError) -> str:
    if isinstance(error, HttpError) and error.status_code == 404:
        return "path not found"
    return str(error)


def _placeable(config: Any, location: Location) -> bool:
    if not location:
        return False
    node = config
    for step in location[:-1]:
        if isinstance(node, Mapping):
            if step not in node:
                return isinstance(node, MutableMapping)
            node = node[step]
        elif isinstance(node, list) and isinstance(step, int) and step < len(node):
            node = node[step]
        else:
            return False
    if isinstance(node, MutableMapping):
        return True
    last = location[-1]
    return isinstance(node, list) and isinstance(last, int) and last < len(node)


def _check_placement(config: Any, refs: list[tuple[Location, SecretRef]]) -> None:
    failures = [
        _failure(ref, "cannot place value at " + (".".join(map(str, location)) or "config root"))
        for location, ref in refs
        if not _placeable(config, location)
    ]
    if failures:
        raise ConfigInjectionError(failures)


def _assign(config: Any, location: Location, value: Any) -> None:
    node = config
    for step in location[:-1]:
        if isinstance(node, MutableMapping) and step not in node:
            node[step] = {}
        node = node[step]
    node[location[-1]] = value
