# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from crate_extract.errors import ExtractError
from crate_extract.feature import DEFAULT_FEATURE_CRATES
from crate_extract.manifest import NamespacePrefixes
from crate_extract.metadata import PackageGraph
from crate_extract.workspace import ComposeConfig, ExtractOptions, ExtractReport, extract_v0


def _build_parser() -> argparse.ArgumentParser:
	p = argparse.ArgumentParser(
		prog="crate-extract",
		description="Extract crates and their path dependencies into a standalone, renamed Cargo workspace",
	)
	p.add_argument("--root", type=Path, default=Path("rust-src"), help="Root of the source tree (default: ./rust-src)")
	p.add_argument(
		"-o",
		"--out",
		type=Path,
		default=Path("rustfmt-syntax"),
		help="Output workspace directory (default: ./rustfmt-syntax)",
	)
	p.add_argument("-f", "--force", action="store_true", help="Remove the output directory first if it already exists")
	p.add_argument("-p", "--previous", type=Path, default=None, help="Root of the previously extracted version")
	p.add_argument("--host-prefix", default="rustc", help="Name prefix replaced by the target prefix (default: rustc)")
	p.add_argument("--target-prefix", default="rustfmt", help="Private namespace prefix (default: rustfmt)")
	p.add_argument(
		"--feature-crate",
		dest="feature_crates",
		action="append",
		default=None,
		help=f"Crate that gets #![feature(rustc_private)] (repeatable; default: {', '.join(DEFAULT_FEATURE_CRATES)})",
	)
	p.add_argument("--json", action="store_true", help="Emit machine-readable JSON report")
	p.add_argument("-v", "--verbose", action="store_true", help="Log every step to stderr")
	p.add_argument("crates", metavar="CRATE", nargs="+", help="Crates to extract (name or lib-prefixed name)")
	return p


def _setup_logging(verbose: bool) -> None:
	logging.basicConfig(
		level=logging.DEBUG if verbose else logging.WARNING,
		format="%(levelname)s %(name)s: %(message)s",
		stream=sys.stderr,
	)


def main(argv: list[str] | None = None, graph: PackageGraph | None = None) -> int:
	p = _build_parser()
	args = p.parse_args(argv)
	_setup_logging(bool(args.verbose))

	feature_crates = tuple(args.feature_crates) if args.feature_crates else DEFAULT_FEATURE_CRATES
	opts = ExtractOptions(
		crates=list(args.crates),
		root=args.root,
		out_dir=args.out,
		force=bool(args.force),
		previous=args.previous,
		compose=ComposeConfig(
			prefixes=NamespacePrefixes(host=args.host_prefix, target=args.target_prefix),
			feature_crates=feature_crates,
		),
	)
	try:
		report = extract_v0(opts, graph)
	except ExtractError as err:
		report = ExtractReport(ok=False, out_dir=str(opts.out_dir), members=[], error=err)
	except OSError as err:
		report = ExtractReport(
			ok=False,
			out_dir=str(opts.out_dir),
			members=[],
			error=ExtractError(reason_code="IO_ERROR", message=str(err), path=str(err.filename) if err.filename is not None else None),
		)

	if args.json:
		print(json.dumps(report.to_dict(), sort_keys=True, separators=(",", ":")))
		return 0 if report.ok else 2
	if report.error is not None:
		print(f"crate-extract: {report.error.format_human()}", file=sys.stderr)
		return 2
	return 0
