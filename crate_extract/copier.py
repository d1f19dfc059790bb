# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import errno
import logging
import os
import shutil
from pathlib import Path

logger = logging.getLogger(__name__)


def _raise(err: OSError) -> None:
	raise err


def _check_link_loop(dirpath: str, dirnames: list[str]) -> None:
	here = os.path.realpath(dirpath)
	for name in dirnames:
		child = os.path.join(dirpath, name)
		if not os.path.islink(child):
			continue
		target = os.path.realpath(child)
		if here == target or here.startswith(target + os.sep):
			raise OSError(errno.ELOOP, "symlink points back to an enclosing directory", child)


def copy_tree(source_root: Path, destination_root: Path) -> int:
	"""
	Copy every file under `source_root` into `destination_root`.

	Only file contents are copied: permissions, timestamps and symlinks are not
	preserved (links are followed; a directory link back into one of its own
	ancestors is an ELOOP error). Errors, including directories that cannot be
	listed, propagate as-is and leave whatever was already copied in place.
	Returns the number of files copied.
	"""
	if not source_root.is_dir():
		raise FileNotFoundError(f"source directory does not exist: {source_root}")
	copied = 0
	for dirpath, dirnames, filenames in os.walk(source_root, onerror=_raise, followlinks=True):
		dirnames.sort()
		_check_link_loop(dirpath, dirnames)
		rel = Path(dirpath).relative_to(source_root)
		target_dir = destination_root / rel
		target_dir.mkdir(parents=True, exist_ok=True)
		for filename in sorted(filenames):
			shutil.copyfile(Path(dirpath) / filename, target_dir / filename)
			copied += 1
	logger.debug("copied %d files from %s to %s", copied, source_root, destination_root)
	return copied
