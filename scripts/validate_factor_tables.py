#!/usr/bin/env python3
"""Check the YAML factor tables from a source checkout.

Runs the same validator as the ``clinictariff-validate`` console script but
resolves the package from ``src/`` so no install is needed.
"""

from __future__ import annotations

import sys
from pathlib import Path

SRC_DIR = Path(__file__).resolve().parents[1] / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from clinictariff.backend.config.validator import main  # noqa: E402


if __name__ == "__main__":
    raise SystemExit(main())
