"""Branch permission reconciliation and bulk branch import."""

from __future__ import annotations

from branch_permissions.cli import main

__all__ = ["main"]
