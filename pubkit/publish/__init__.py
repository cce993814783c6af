"""Publish bounded context.

Modules, bottom-up:
- model, semver, changelog: package state types and the parsers they need
- history, decision: git history since last publish and the suggested bump
- discovery, registry, fabrics: per-package working records for one run
- checkpoint, pipeline, phases: resumable phase execution
- report: operator-facing summaries
- service: orchestration used by the CLI
"""

from __future__ import annotations
