# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import json
import logging
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from crate_extract.closure import LocalPackage, compute_closure
from crate_extract.copier import copy_tree
from crate_extract.errors import ExtractError
from crate_extract.feature import DEFAULT_FEATURE_CRATES, RUSTC_PRIVATE_FEATURE, inject_feature
from crate_extract.manifest import NamespacePrefixes, rewrite_manifest
from crate_extract.metadata import PackageGraph, load_cargo_metadata

logger = logging.getLogger(__name__)

WORKSPACE_MANIFEST = "Cargo.toml"


@dataclass(frozen=True)
class ComposeConfig:
	prefixes: NamespacePrefixes = NamespacePrefixes()
	feature_crates: tuple[str, ...] = DEFAULT_FEATURE_CRATES
	feature_directive: str = RUSTC_PRIVATE_FEATURE


@dataclass(frozen=True)
class ExtractOptions:
	crates: list[str]
	root: Path = Path("rust-src")
	out_dir: Path = Path("rustfmt-syntax")
	force: bool = False
	# Root of a previously extracted version. Accepted for CLI compatibility;
	# nothing reads it yet.
	previous: Path | None = None
	compose: ComposeConfig = field(default_factory=ComposeConfig)


@dataclass(frozen=True)
class MemberReport:
	name: str
	new_name: str
	dir: str
	source_root: str
	feature_injected: bool

	def to_dict(self) -> dict[str, Any]:
		return {
			"name": self.name,
			"new_name": self.new_name,
			"dir": self.dir,
			"source_root": self.source_root,
			"feature_injected": self.feature_injected,
		}


@dataclass(frozen=True)
class ExtractReport:
	ok: bool
	out_dir: str
	members: list[MemberReport]
	error: ExtractError | None = None

	def to_dict(self) -> dict[str, Any]:
		return {
			"ok": self.ok,
			"out_dir": self.out_dir,
			"members": [m.to_dict() for m in self.members],
			"error": self.error.to_dict() if self.error is not None else None,
		}


def render_workspace_manifest(member_dirs: list[str]) -> str:
	lines = ["[workspace]", "members = ["]
	# JSON string escaping is valid for TOML basic strings.
	lines.extend(f"  {json.dumps(d)}," for d in member_dirs)
	lines.append("]")
	return "\n".join(lines) + "\n"


def _check_member_dirs(closure: tuple[LocalPackage, ...]) -> None:
	seen: dict[str, LocalPackage] = {}
	for pkg in closure:
		other = seen.get(pkg.dir_name)
		if other is not None:
			raise ExtractError(
				reason_code="DUPLICATE_MEMBER_DIR",
				message=f"'{other.name}' and '{pkg.name}' would both be copied to '{pkg.dir_name}'",
				package=pkg.name,
				path=str(pkg.root_dir),
			)
		seen[pkg.dir_name] = pkg


def compose_workspace(
	closure: tuple[LocalPackage, ...],
	out_dir: Path,
	config: ComposeConfig = ComposeConfig(),
) -> list[MemberReport]:
	"""
	Materialize `closure` under `out_dir` and write the workspace Cargo.toml.

	Packages are processed in closure order: copy, then (for allow-listed
	crates) the feature gate, then the manifest rename. `out_dir` is expected
	to be clean; nothing is rolled back on failure.
	"""
	_check_member_dirs(closure)
	members: list[MemberReport] = []
	for pkg in closure:
		dest = out_dir / pkg.dir_name
		logger.info("copying %s from %s to %s", pkg.name, pkg.root_dir, dest)
		copy_tree(pkg.root_dir, dest)

		injected = pkg.name in config.feature_crates
		if injected:
			inject_feature(pkg, dest, config.feature_directive)

		new_name = rewrite_manifest(pkg, dest, config.prefixes)
		members.append(
			MemberReport(
				name=pkg.name,
				new_name=new_name,
				dir=pkg.dir_name,
				source_root=str(pkg.root_dir),
				feature_injected=injected,
			)
		)

	out_dir.mkdir(parents=True, exist_ok=True)
	descriptor = out_dir / WORKSPACE_MANIFEST
	descriptor.write_text(render_workspace_manifest([m.dir for m in members]), encoding="utf-8")
	logger.debug("wrote %s with %d members", descriptor, len(members))
	return members


def prepare_output(out_dir: Path, *, force: bool) -> None:
	"""Remove `out_dir` when forced; otherwise refuse to write into a non-empty one."""
	if not out_dir.exists():
		return
	if force:
		logger.debug("removing %s", out_dir)
		shutil.rmtree(out_dir)
		return
	if not out_dir.is_dir() or any(out_dir.iterdir()):
		raise ExtractError(
			reason_code="OUTPUT_NOT_EMPTY",
			message="output directory already exists and is not empty (use --force to replace it)",
			path=str(out_dir),
		)


def extract_v0(opts: ExtractOptions, graph: PackageGraph | None = None) -> ExtractReport:
	"""
	Extract `opts.crates` and their local dependencies into `opts.out_dir`.

	The closure is computed before the output directory is touched, so lookup
	failures and cycles never leave a partial workspace behind.
	"""
	if graph is None:
		graph = load_cargo_metadata(opts.root)
	closure = compute_closure(graph, opts.crates)
	prepare_output(opts.out_dir, force=opts.force)
	members = compose_workspace(closure, opts.out_dir, opts.compose)
	return ExtractReport(ok=True, out_dir=str(opts.out_dir), members=members)
