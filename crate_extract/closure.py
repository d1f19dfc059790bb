# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Local dependency closure.

Starting from the requested crates, follow only dependencies that live in the
same source tree (path dependencies). Registry and git dependencies are not
part of the extracted workspace and are never followed, even if a package of
the same name exists locally.

The result is sorted by `(name, root_dir)` so copy order and the generated
workspace descriptor are stable across runs.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Iterator

from crate_extract.errors import CycleDetected
from crate_extract.metadata import Package, PackageGraph

logger = logging.getLogger(__name__)


@dataclass(frozen=True, order=True)
class LocalPackage:
	name: str
	root_dir: Path
	primary_source_path: Path = field(compare=False)
	manifest_path: Path = field(compare=False)

	@classmethod
	def from_package(cls, pkg: Package) -> LocalPackage:
		return cls(
			name=pkg.name,
			root_dir=pkg.manifest_path.parent,
			primary_source_path=pkg.primary_source_path,
			manifest_path=pkg.manifest_path,
		)

	@property
	def key(self) -> tuple[str, Path]:
		return (self.name, self.root_dir)

	@property
	def dir_name(self) -> str:
		"""Directory name used for this package inside the output workspace."""
		return self.root_dir.name


def _local_dep_names(pkg: Package) -> Iterator[str]:
	return (d.name for d in pkg.dependencies if d.is_local)


def _expand(graph: PackageGraph, root_name: str, done: dict[tuple[str, Path], LocalPackage]) -> None:
	root_pkg = graph.resolve(root_name)
	root = LocalPackage.from_package(root_pkg)
	if root.key in done:
		return

	# Depth-first walk with an explicit stack. `path` holds the packages whose
	# dependencies are still being expanded; meeting one of them again is a cycle.
	path: list[LocalPackage] = [root]
	stack: list[Iterator[str]] = [_local_dep_names(root_pkg)]
	while stack:
		dep_name = next(stack[-1], None)
		if dep_name is None:
			finished = path.pop()
			stack.pop()
			done[finished.key] = finished
			continue
		dep_pkg = graph.resolve(dep_name)
		dep = LocalPackage.from_package(dep_pkg)
		if dep.key in done:
			continue
		on_path = [p.key for p in path]
		if dep.key in on_path:
			start = on_path.index(dep.key)
			cycle = tuple(p.name for p in path[start:]) + (dep.name,)
			raise CycleDetected(
				message=f"local dependency cycle through '{dep.name}'",
				package=dep.name,
				path=str(dep.manifest_path),
				cycle=cycle,
			)
		path.append(dep)
		stack.append(_local_dep_names(dep_pkg))


def compute_closure(graph: PackageGraph, requested_names: Iterable[str]) -> tuple[LocalPackage, ...]:
	"""
	Return every package reachable from `requested_names` through local edges.

	Requested names may use the `lib` alias form. Lookup failures propagate as
	`PackageNotFoundError`; a local cycle raises `CycleDetected`.
	"""
	done: dict[tuple[str, Path], LocalPackage] = {}
	for name in requested_names:
		_expand(graph, name, done)
	closure = tuple(sorted(done.values()))
	logger.debug("found %d local packages", len(closure))
	return closure
