"""Bot Filter: honeypot and fill-time checks."""

from uuid import UUID

from relay.core.bot_filter import decoy_broadcast_id, is_bot_submission


def test_populated_honeypot_is_bot():
    assert is_bot_submission("http://spam.example", 10_000, 2000)


def test_fast_submission_is_bot():
    assert is_bot_submission(None, 1999, 2000)


def test_threshold_itself_is_human():
    assert not is_bot_submission(None, 2000, 2000)


def test_missing_signals_are_human():
    assert not is_bot_submission(None, None, 2000)
    assert not is_bot_submission("", None, 2000)


def test_decoy_ids_are_random_uuids():
    a, b = decoy_broadcast_id(), decoy_broadcast_id()
    assert isinstance(a, UUID)
    assert a != b
