# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Cargo.toml rewriting.

Extracted crates are renamed into a private namespace so they can never be
confused with the crates.io packages of the same name. Local (path)
dependencies keep their import name but point at the renamed package through
Cargo's `package = "..."` key:

	[dependencies]
	rustc_span = { path = "../rustc_span" }

becomes

	[dependencies]
	rustc_span = { path = "../rustc_span", package = "rustfmt_span" }

The document is edited in place with tomlkit so comments, key order and every
field we do not touch survive byte for byte.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, MutableMapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import tomlkit
from tomlkit.exceptions import TOMLKitError

from crate_extract.closure import LocalPackage
from crate_extract.errors import ManifestStructureError

logger = logging.getLogger(__name__)

DEPENDENCY_TABLES: tuple[str, ...] = ("dependencies", "dev-dependencies", "build-dependencies")


@dataclass(frozen=True)
class NamespacePrefixes:
	host: str = "rustc"
	target: str = "rustfmt"


def add_namespace_prefix(name: str, prefixes: NamespacePrefixes = NamespacePrefixes()) -> str:
	"""
	Move `name` into the target namespace.

	`rustc_span` -> `rustfmt_span` (leading host token replaced once),
	`syntax` -> `rustfmt_syntax` (target token prepended).
	"""
	host = f"{prefixes.host}_"
	if name.startswith(host):
		return name.replace(host, f"{prefixes.target}_", 1)
	return f"{prefixes.target}_{name}"


def parse_manifest(text: str, *, path: Path | None = None) -> tomlkit.TOMLDocument:
	try:
		return tomlkit.parse(text)
	except TOMLKitError as err:
		raise ManifestStructureError(
			message=f"cannot parse manifest: {err}",
			path=str(path) if path is not None else None,
		) from err


def rename_package(doc: MutableMapping[str, Any], prefixes: NamespacePrefixes, *, path: Path | None = None) -> str:
	where = str(path) if path is not None else None
	package = doc.get("package")
	if not isinstance(package, MutableMapping):
		raise ManifestStructureError(message="manifest has no [package] table", path=where)
	name = package.get("name")
	if not isinstance(name, str) or not name:
		raise ManifestStructureError(message="[package] has no name", path=where)
	new_name = add_namespace_prefix(str(name), prefixes)
	package["name"] = new_name
	return new_name


def _dependency_tables(doc: Mapping[str, Any]) -> list[tuple[str, Any]]:
	out: list[tuple[str, Any]] = [(key, doc[key]) for key in DEPENDENCY_TABLES if key in doc]
	targets = doc.get("target")
	if isinstance(targets, Mapping):
		for cfg, target_table in targets.items():
			if not isinstance(target_table, Mapping):
				continue
			for key in DEPENDENCY_TABLES:
				if key in target_table:
					out.append((f"target.{cfg}.{key}", target_table[key]))
	return out


def rename_local_dependencies(
	doc: MutableMapping[str, Any],
	prefixes: NamespacePrefixes,
	*,
	path: Path | None = None,
) -> dict[str, str]:
	"""
	Point every path dependency at its renamed package.

	Returns `{dependency key: new package name}` for the entries changed.
	Registry, git and workspace-inherited dependencies are left alone.
	"""
	where = str(path) if path is not None else None
	renamed: dict[str, str] = {}
	for table_name, table in _dependency_tables(doc):
		if not isinstance(table, MutableMapping):
			raise ManifestStructureError(message=f"[{table_name}] is not a table", path=where)
		for dep_key, dep in table.items():
			if not isinstance(dep, MutableMapping) or "path" not in dep:
				continue
			original = dep.get("package", dep_key)
			if not isinstance(original, str) or not original:
				raise ManifestStructureError(
					message=f"dependency '{dep_key}' in [{table_name}] has no usable package name",
					package=str(dep_key),
					path=where,
				)
			new_name = add_namespace_prefix(str(original), prefixes)
			dep["package"] = new_name
			renamed[str(dep_key)] = new_name
	return renamed


def rewrite_manifest(
	package: LocalPackage,
	destination_root: Path,
	prefixes: NamespacePrefixes = NamespacePrefixes(),
) -> str:
	"""
	Rename the copied manifest of `package` and its path dependencies.

	Reads and rewrites the copy under `destination_root`; the original tree is
	not read. Returns the package's new name.
	"""
	manifest = destination_root / package.manifest_path.relative_to(package.root_dir)
	# newline="" keeps CRLF manifests byte-identical outside the edited keys.
	try:
		with manifest.open(encoding="utf-8", newline="") as f:
			text = f.read()
	except UnicodeDecodeError as err:
		raise ManifestStructureError(message=f"manifest is not valid UTF-8: {err}", path=str(manifest)) from err
	doc = parse_manifest(text, path=manifest)
	new_name = rename_package(doc, prefixes, path=manifest)
	renamed = rename_local_dependencies(doc, prefixes, path=manifest)
	with manifest.open("w", encoding="utf-8", newline="") as f:
		f.write(tomlkit.dumps(doc))
	logger.debug("renamed %s -> %s (%d local dependencies) in %s", package.name, new_name, len(renamed), manifest)
	return new_name
