# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Package graph (read-only view over `cargo metadata`).

The extraction pipeline only needs three things from Cargo:
- where each package's manifest and primary source file live,
- which dependencies each package declares,
- whether a dependency comes from the local tree (path) or from elsewhere.

`cargo metadata --no-deps` reports path dependencies with `"source": null`,
which is what marks an edge as local here.
"""

from __future__ import annotations

import json
import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

from crate_extract.errors import MetadataError, PackageNotFoundError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Dependency:
	name: str
	is_local: bool


@dataclass(frozen=True)
class Package:
	name: str
	manifest_path: Path
	primary_source_path: Path
	dependencies: tuple[Dependency, ...]


class PackageGraph:
	"""Snapshot of the packages in one source tree, looked up by name."""

	def __init__(self, packages: list[Package]) -> None:
		self._packages = tuple(packages)

	@property
	def packages(self) -> tuple[Package, ...]:
		return self._packages

	def resolve(self, name: str) -> Package:
		"""
		Find a package by name, or by its `lib`-prefixed alias.

		`libsyntax` resolves to the package named `syntax`. The first match in
		metadata order wins.
		"""
		for pkg in self._packages:
			if pkg.name == name or f"lib{pkg.name}" == name:
				return pkg
		raise PackageNotFoundError(message=f"could not find package '{name}'", package=name)

	@classmethod
	def from_metadata(cls, obj: Mapping[str, Any]) -> PackageGraph:
		"""Build a graph from parsed `cargo metadata --format-version 1` output."""
		if not isinstance(obj, Mapping):
			raise MetadataError(message="cargo metadata output must be a JSON object")
		raw_packages = obj.get("packages")
		if not isinstance(raw_packages, list):
			raise MetadataError(message="cargo metadata 'packages' must be an array")
		return cls([_package_from_raw(raw) for raw in raw_packages])


def _package_from_raw(raw: Any) -> Package:
	if not isinstance(raw, dict):
		raise MetadataError(message="cargo metadata package entry must be an object")
	name = raw.get("name")
	if not isinstance(name, str) or not name:
		raise MetadataError(message="cargo metadata package entry is missing 'name'")
	manifest_path = raw.get("manifest_path")
	if not isinstance(manifest_path, str) or not manifest_path:
		raise MetadataError(message="package is missing 'manifest_path'", package=name)
	targets = raw.get("targets")
	if not isinstance(targets, list) or not targets:
		raise MetadataError(message="package has no targets", package=name, path=manifest_path)
	first = targets[0]
	src_path = first.get("src_path") if isinstance(first, dict) else None
	if not isinstance(src_path, str) or not src_path:
		raise MetadataError(message="package target is missing 'src_path'", package=name, path=manifest_path)
	raw_deps = raw.get("dependencies", [])
	if not isinstance(raw_deps, list):
		raise MetadataError(message="package 'dependencies' must be an array", package=name, path=manifest_path)
	deps: list[Dependency] = []
	for d in raw_deps:
		dep_name = d.get("name") if isinstance(d, dict) else None
		if not isinstance(dep_name, str) or not dep_name:
			raise MetadataError(message="dependency entry is missing 'name'", package=name, path=manifest_path)
		deps.append(Dependency(name=dep_name, is_local=d.get("source") is None))
	return Package(
		name=name,
		manifest_path=Path(manifest_path),
		primary_source_path=Path(src_path),
		dependencies=tuple(deps),
	)


def load_cargo_metadata(root: Path, *, cargo: str = "cargo") -> PackageGraph:
	"""Run `cargo metadata` in `root` and return the resulting package graph."""
	cmd = [cargo, "metadata", "--no-deps", "--format-version", "1"]
	logger.debug("running %s in %s", " ".join(cmd), root)
	try:
		cp = subprocess.run(cmd, cwd=str(root), text=True, capture_output=True, check=False)
	except OSError as err:
		raise MetadataError(message=f"cannot run {cargo}: {err}", path=str(root)) from err
	if cp.returncode != 0:
		detail = (cp.stderr or "").strip()
		raise MetadataError(message=f"cargo metadata failed: {detail}", path=str(root))
	try:
		obj = json.loads(cp.stdout)
	except json.JSONDecodeError as err:
		raise MetadataError(message=f"cargo metadata returned invalid JSON: {err}", path=str(root)) from err
	graph = PackageGraph.from_metadata(obj)
	logger.debug("loaded %d packages from %s", len(graph.packages), root)
	return graph
