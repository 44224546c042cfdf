"""Settings: environment-driven defaults and URL normalization."""

from relay.config import Settings


def test_postgres_url_gets_async_driver():
    s = Settings(database_url="postgresql://u:p@host:5432/relay")
    assert s.database_url == "postgresql+asyncpg://u:p@host:5432/relay"


def test_retention_and_abuse_defaults():
    s = Settings()
    assert s.broadcast_ttl_days == 7
    assert s.decrypted_invite_grace_minutes == 10
    assert s.mailbox_inactivity_days == 30
    assert s.bot_min_elapsed_ms == 2000
    assert s.broadcast_creation_max_requests == 3
