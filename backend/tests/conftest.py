"""Root conftest: shared test configuration."""

import os

# Environment must be set before relay.config is first imported
os.environ.setdefault(
    "DATABASE_URL",
    "sqlite+aiosqlite:///test.db",
)
os.environ.setdefault("CLEANUP_SCHEDULER_ENABLED", "false")
os.environ.setdefault("LOG_FORMAT", "text")
