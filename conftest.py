"""Root conftest: loads .env.test before any module imports.

Values already present in the environment win, so CI can point the suite
at another database without editing the file.
"""
from __future__ import annotations

import os
from pathlib import Path

_env_test = Path(__file__).resolve().parent / ".env.test"
if _env_test.exists():
    for raw in _env_test.read_text().splitlines():
        line = raw.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, _, value = line.partition("=")
        os.environ.setdefault(key.strip(), value.strip())

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
