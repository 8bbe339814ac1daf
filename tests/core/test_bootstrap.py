# tests/core/test_bootstrap.py
import random

from talent_mapping.bootstrap import (
    build_api_client,
    build_backend,
    build_components,
    build_persistence_store,
    build_poller,
    build_session,
)
from talent_mapping.cache.backends import InMemoryStore, RedisStore
from talent_mapping.core.config import ApiSettings, LoggingSettings, PollerSettings, StorageSettings


def test_build_backend_defaults_to_memory():
    assert isinstance(build_backend(StorageSettings(redis_url=None)), InMemoryStore)


def test_build_backend_uses_redis_when_configured(mocker):
    from_url = mocker.patch("talent_mapping.cache.backends.redis.Redis.from_url")
    backend = build_backend(StorageSettings(redis_url="redis://cache:6379/0", key_prefix="tm:"))
    assert isinstance(backend, RedisStore)
    assert from_url.call_args.args == ("redis://cache:6379/0",)


def test_build_session_restores_saved_progress(small_bank):
    settings = StorageSettings(encryption_key="bootstrap-secret", redis_url=None)
    store = build_persistence_store(settings, backend=InMemoryStore())

    first = build_session(small_bank, store=store, settings=settings)
    first.auto_fill(rng=random.Random(3))

    second = build_session(small_bank, store=store, settings=settings)
    assert second.answers == first.answers
    assert second.is_all_complete()


def test_build_session_uses_configured_keys(small_bank):
    settings = StorageSettings(answers_key="a", flags_key="f", redis_url=None)
    backend = InMemoryStore()
    session = build_session(small_bank, store=build_persistence_store(settings, backend=backend), settings=settings)
    session.set_answer("via_creativity_0", 2)
    assert set(backend.keys()) == {"a", "f"}


def test_build_api_client_and_poller():
    client = build_api_client(ApiSettings(base_url="http://x.test/", timeout=5, auth_token="t"))
    assert client.base_url == "http://x.test"
    assert client.timeout == 5
    assert client.auth_token == "t"

    poller = build_poller(client, PollerSettings(max_attempts=4, base_delay=0.5, cap_delay=2))
    assert poller.max_attempts == 4
    assert poller.delay_for(3) == 2


def test_build_components_configures_logging_first(small_bank, mocker):
    setup = mocker.patch("talent_mapping.bootstrap.setup_logging")
    components = build_components(
        small_bank,
        storage=StorageSettings(redis_url=None),
        api=ApiSettings(base_url="http://api.test"),
        polling=PollerSettings(max_attempts=2),
        log=LoggingSettings(level="DEBUG"),
    )

    setup.assert_called_once_with("DEBUG")
    assert components.session.bank is small_bank
    assert components.client.base_url == "http://api.test"
    assert components.poller.max_attempts == 2
