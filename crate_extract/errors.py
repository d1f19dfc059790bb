# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class ExtractError(Exception):
	"""
	A structured, serializable error for crate extraction.

	Every failure the pipeline can report carries a stable `reason_code` so the
	JSON report and the human one stay in sync.
	"""

	reason_code: str
	message: str
	package: str | None = None
	path: str | None = None
	cycle: tuple[str, ...] | None = None

	def __str__(self) -> str:
		return self.format_human()

	def to_dict(self) -> dict[str, Any]:
		return {
			"reason_code": self.reason_code,
			"message": self.message,
			"package": self.package,
			"path": self.path,
			"cycle": list(self.cycle) if self.cycle is not None else None,
		}

	def format_human(self) -> str:
		parts: list[str] = [f"[{self.reason_code}] {self.message}"]
		if self.package:
			parts.append(f"package={self.package}")
		if self.path:
			parts.append(f"path={self.path}")
		if self.cycle:
			parts.append("cycle=" + " -> ".join(self.cycle))
		return " ".join(parts)


@dataclass(frozen=True)
class PackageNotFoundError(ExtractError, LookupError):
	reason_code: str = "PACKAGE_NOT_FOUND"
	message: str = "package not found"


@dataclass(frozen=True)
class ManifestStructureError(ExtractError):
	reason_code: str = "MANIFEST_STRUCTURE"
	message: str = "malformed manifest"


@dataclass(frozen=True)
class CycleDetected(ExtractError):
	reason_code: str = "DEPENDENCY_CYCLE"
	message: str = "local dependency cycle"


@dataclass(frozen=True)
class MetadataError(ExtractError):
	reason_code: str = "METADATA_ERROR"
	message: str = "cannot read package metadata"
