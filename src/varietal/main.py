#!/usr/bin/env python3

from __future__ import annotations

from varietal.ui.cli import main, run

__all__ = ["main", "run"]

if __name__ == "__main__":
    run()
