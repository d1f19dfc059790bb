# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import json
import subprocess
import sys
from pathlib import Path

import pytest
import tomlkit

from crate_extract.cli import main
from crate_extract.feature import RUSTC_PRIVATE_FEATURE

REPO_ROOT = Path(__file__).resolve().parents[2]


def test_cli_extracts_with_default_prefixes(cargo_tree, tmp_path: Path) -> None:
	cargo_tree.add("syntax", local=["rustc_data_structures"])
	cargo_tree.add("rustc_data_structures", lib_source="pub mod fx;\n")
	out = tmp_path / "rustfmt-syntax"

	assert main(["-o", str(out), "libsyntax"], graph=cargo_tree.graph()) == 0

	syntax = tomlkit.parse((out / "syntax" / "Cargo.toml").read_text(encoding="utf-8"))
	assert syntax["package"]["name"] == "rustfmt_syntax"
	assert syntax["dependencies"]["rustc_data_structures"]["package"] == "rustfmt_data_structures"
	lib_rs = (out / "rustc_data_structures" / "src" / "lib.rs").read_text(encoding="utf-8")
	assert lib_rs == RUSTC_PRIVATE_FEATURE + "\npub mod fx;\n"


def test_cli_prefix_and_feature_flags(cargo_tree, tmp_path: Path) -> None:
	cargo_tree.add("host_a", local=["b"])
	cargo_tree.add("b")
	out = tmp_path / "out"
	argv = ["--out", str(out), "--host-prefix", "host", "--target-prefix", "tool", "--feature-crate", "b", "host_a"]

	assert main(argv, graph=cargo_tree.graph()) == 0

	a = tomlkit.parse((out / "host_a" / "Cargo.toml").read_text(encoding="utf-8"))
	assert a["package"]["name"] == "tool_a"
	assert a["dependencies"]["b"]["package"] == "tool_b"
	assert (out / "b" / "src" / "lib.rs").read_text(encoding="utf-8").startswith(RUSTC_PRIVATE_FEATURE + "\n")
	assert not (out / "host_a" / "src" / "lib.rs").read_text(encoding="utf-8").startswith("#!")


def test_cli_json_report(cargo_tree, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
	cargo_tree.add("A", local=["B"])
	cargo_tree.add("B")
	out = tmp_path / "out"

	assert main(["--json", "-o", str(out), "A"], graph=cargo_tree.graph()) == 0

	report = json.loads(capsys.readouterr().out)
	assert report["ok"] is True
	assert [m["dir"] for m in report["members"]] == ["A", "B"]
	assert report["error"] is None


def test_cli_missing_crate(cargo_tree, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
	cargo_tree.add("A")
	out = tmp_path / "out"

	assert main(["-o", str(out), "nope"], graph=cargo_tree.graph()) == 2

	err = capsys.readouterr().err
	assert "[PACKAGE_NOT_FOUND]" in err
	assert "package=nope" in err
	assert not out.exists()


def test_cli_json_error(cargo_tree, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
	cargo_tree.add("A", local=["B"])
	cargo_tree.add("B", local=["A"])

	assert main(["--json", "-o", str(tmp_path / "out"), "A"], graph=cargo_tree.graph()) == 2

	report = json.loads(capsys.readouterr().out)
	assert report["ok"] is False
	assert report["error"]["reason_code"] == "DEPENDENCY_CYCLE"
	assert report["error"]["cycle"] == ["A", "B", "A"]


def test_cli_requires_a_crate(capsys: pytest.CaptureFixture[str]) -> None:
	with pytest.raises(SystemExit) as excinfo:
		main([])
	assert excinfo.value.code == 2


def test_module_entry_point_reports_metadata_failure(tmp_path: Path) -> None:
	# No Cargo.toml here, so cargo (if installed at all) fails.
	empty = tmp_path / "empty"
	empty.mkdir()
	cp = subprocess.run(
		[sys.executable, "-m", "crate_extract", "--root", str(empty), "-o", str(tmp_path / "out"), "syntax"],
		cwd=str(REPO_ROOT),
		text=True,
		capture_output=True,
	)
	assert cp.returncode == 2
	assert "[METADATA_ERROR]" in cp.stderr
	assert not (tmp_path / "out").exists()


def test_cli_undecodable_manifest(cargo_tree, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
	a_dir = cargo_tree.add("A")
	manifest = a_dir / "Cargo.toml"
	manifest.write_bytes(manifest.read_bytes() + b'description = "\xff"\n')

	assert main(["-o", str(tmp_path / "out"), "A"], graph=cargo_tree.graph()) == 2

	assert "[MANIFEST_STRUCTURE]" in capsys.readouterr().err
