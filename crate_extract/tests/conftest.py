# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

from pathlib import Path
from typing import Any, Callable

import pytest

from crate_extract.metadata import PackageGraph


def _write_file(path: Path, text: str) -> None:
	path.parent.mkdir(parents=True, exist_ok=True)
	path.write_text(text, encoding="utf-8")


class CargoTree:
	"""
	A tiny on-disk Cargo tree plus the `cargo metadata` JSON describing it.

	Tests never run cargo; `graph()` builds the package graph straight from the
	recorded metadata.
	"""

	def __init__(self, root: Path) -> None:
		self.root = root
		self.packages: list[dict[str, Any]] = []

	def add(
		self,
		name: str,
		*,
		local: list[str] | None = None,
		registry: list[str] | None = None,
		dir_name: str | None = None,
		lib_source: str = "pub fn hello() {}\n",
	) -> Path:
		crate_dir = self.root / (dir_name or name)
		lines = [
			"[package]",
			f'name = "{name}"',
			'version = "0.0.0"',
			'edition = "2018"',
			"",
			"[dependencies]",
		]
		deps: list[dict[str, Any]] = []
		for dep in local or []:
			lines.append(f'{dep} = {{ path = "../{dep}" }}')
			deps.append({"name": dep, "source": None, "req": "*", "kind": None})
		for dep in registry or []:
			lines.append(f'{dep} = "1.0"')
			deps.append({"name": dep, "source": "registry+https://github.com/rust-lang/crates.io-index", "req": "^1.0"})
		_write_file(crate_dir / "Cargo.toml", "\n".join(lines) + "\n")
		_write_file(crate_dir / "src" / "lib.rs", lib_source)
		self.packages.append(
			{
				"name": name,
				"version": "0.0.0",
				"manifest_path": str(crate_dir / "Cargo.toml"),
				"targets": [{"kind": ["lib"], "name": name, "src_path": str(crate_dir / "src" / "lib.rs")}],
				"dependencies": deps,
			}
		)
		return crate_dir

	def metadata(self) -> dict[str, Any]:
		return {"packages": list(self.packages), "version": 1}

	def graph(self) -> PackageGraph:
		return PackageGraph.from_metadata(self.metadata())


@pytest.fixture
def cargo_tree(tmp_path: Path) -> CargoTree:
	return CargoTree(tmp_path / "src-tree")


@pytest.fixture
def write_file() -> Callable[[Path, str], None]:
	return _write_file
