# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
crate_extract: pull crates out of a large Cargo tree into their own workspace.

Pipeline:
  metadata:  package graph from `cargo metadata`
  closure:   requested crates + their path dependencies, sorted
  copier:    byte copy of each crate directory
  feature:   `#![feature(rustc_private)]` for crates that need compiler internals
  manifest:  rename crates and path dependencies into a private namespace
  workspace: drive the above and write the workspace Cargo.toml
"""

__all__ = ["cli", "closure", "copier", "errors", "feature", "manifest", "metadata", "workspace"]
