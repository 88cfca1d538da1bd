from __future__ import annotations

import os

# The app module builds its engine at import time; keep tests off the local database file.
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("CREATE_SCHEMA_ON_STARTUP", "0")
os.environ.setdefault("TZ", "Europe/Paris")
