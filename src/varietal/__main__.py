from __future__ import annotations

from varietal.ui.cli import run

run()
