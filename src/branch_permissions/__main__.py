"""
Entry point for running branch_permissions as a module.

This file enables:
- `python -m branch_permissions`
- `uv run python -m branch_permissions`
"""

from __future__ import annotations

from branch_permissions import main

if __name__ == "__main__":
    main()
