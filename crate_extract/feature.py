# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import logging
from pathlib import Path

from crate_extract.closure import LocalPackage
from crate_extract.errors import ExtractError

logger = logging.getLogger(__name__)

RUSTC_PRIVATE_FEATURE = "#![feature(rustc_private)]"

# Crates that reach into compiler internals and need the feature gate to build
# outside the compiler tree.
DEFAULT_FEATURE_CRATES: tuple[str, ...] = ("rustc_data_structures", "rustc_session")


def copied_source_path(package: LocalPackage, destination_root: Path) -> Path:
	"""Location of `package`'s primary source file inside its copied directory."""
	try:
		rel = package.primary_source_path.relative_to(package.root_dir)
	except ValueError as err:
		raise ExtractError(
			reason_code="SOURCE_OUTSIDE_PACKAGE",
			message="primary source file is not inside the package directory",
			package=package.name,
			path=str(package.primary_source_path),
		) from err
	return destination_root / rel


def inject_feature(package: LocalPackage, destination_root: Path, directive: str = RUSTC_PRIVATE_FEATURE) -> Path:
	"""
	Prepend `directive` as the first line of the copied primary source file.

	Works on the copy under `destination_root` only. Running it twice on the
	same copy adds the line twice, so it must follow a fresh copy.
	"""
	target = copied_source_path(package, destination_root)
	original = target.read_bytes()
	target.write_bytes(directive.encode("utf-8") + b"\n" + original)
	logger.debug("added %s to %s", directive, target)
	return target
