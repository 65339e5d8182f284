"""
Settings for the test suite.

Provides environment defaults so tests run without Docker services:
SQLite instead of PostgreSQL, and local-memory cache and channel layer
instead of Redis. Anything already set in the environment wins.

The SQLite test database lives in a file so that threads get their own
connections, and IMMEDIATE transactions make concurrent writers wait
for the lock instead of failing.
"""

import os
import tempfile
from pathlib import Path

os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("DATABASE_URL", "sqlite://:memory:")
os.environ.setdefault("USE_IN_MEMORY_BACKENDS", "True")
os.environ.setdefault("SECURE_SSL_REDIRECT", "False")
os.environ.setdefault("ALLOWED_HOSTS", "testserver,localhost")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from config.settings import *  # noqa: E402,F401,F403
from config.settings import DATABASES  # noqa: E402

if DATABASES["default"]["ENGINE"] == "django.db.backends.sqlite3":
    DATABASES["default"]["TEST"] = {
        "NAME": str(Path(tempfile.gettempdir()) / "chat_backend_test.sqlite3"),
    }
    DATABASES["default"].setdefault("OPTIONS", {}).update(
        {"transaction_mode": "IMMEDIATE", "timeout": 20}
    )
