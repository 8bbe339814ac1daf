# talent_mapping/bootstrap.py
# Wires the components together from settings.

import logging
from typing import NamedTuple, Optional

from talent_mapping.assessment.loader import get_question_bank
from talent_mapping.assessment.models import QuestionBank
from talent_mapping.assessment.session import AssessmentSession
from talent_mapping.cache.backends import InMemoryStore, KeyValueStore, RedisStore
from talent_mapping.cache.secure_store import PersistenceStore
from talent_mapping.core.config import (
    ApiSettings,
    LoggingSettings,
    PollerSettings,
    StorageSettings,
    api_settings,
    logging_settings,
    poller_settings,
    storage_settings,
)
from talent_mapping.core.logging_config import setup_logging
from talent_mapping.results.client import AssessmentApiClient, ResultTransport
from talent_mapping.results.poller import ResultPoller

logger = logging.getLogger(__name__)


def build_backend(settings: StorageSettings = storage_settings) -> KeyValueStore:
    if settings.redis_url:
        return RedisStore.from_url(settings.redis_url, namespace=settings.key_prefix)
    logger.info("No Redis URL configured, using in-memory storage")
    return InMemoryStore()


def build_persistence_store(
    settings: StorageSettings = storage_settings,
    backend: Optional[KeyValueStore] = None,
) -> PersistenceStore:
    return PersistenceStore(backend if backend is not None else build_backend(settings), settings.encryption_key)


def build_session(
    bank: Optional[QuestionBank] = None,
    store: Optional[PersistenceStore] = None,
    settings: StorageSettings = storage_settings,
    restore: bool = True,
) -> AssessmentSession:
    """Creates a session on the bundled question bank and restores any saved progress."""
    session = AssessmentSession(
        bank or get_question_bank(),
        store=store if store is not None else build_persistence_store(settings),
        answers_key=settings.answers_key,
        flags_key=settings.flags_key,
    )
    if restore:
        session.restore()
    return session


def build_api_client(settings: ApiSettings = api_settings, **kwargs) -> AssessmentApiClient:
    return AssessmentApiClient(
        base_url=settings.base_url,
        timeout=settings.timeout,
        auth_token=settings.auth_token,
        **kwargs,
    )


def build_poller(transport: ResultTransport, settings: PollerSettings = poller_settings, **kwargs) -> ResultPoller:
    return ResultPoller(
        transport,
        max_attempts=settings.max_attempts,
        base_delay=settings.base_delay,
        cap_delay=settings.cap_delay,
        **kwargs,
    )


class Components(NamedTuple):
    session: AssessmentSession
    client: AssessmentApiClient
    poller: ResultPoller


def build_components(
    bank: Optional[QuestionBank] = None,
    storage: StorageSettings = storage_settings,
    api: ApiSettings = api_settings,
    polling: PollerSettings = poller_settings,
    log: LoggingSettings = logging_settings,
) -> Components:
    """Configures logging, then builds a restored session with its API client and result poller."""
    setup_logging(log.level)
    session = build_session(bank, settings=storage)
    client = build_api_client(api)
    poller = build_poller(client, polling)
    logger.info(
        f"Assessment components ready: {session.overall_progress().answered} answers restored",
        extra={"instrument": session.current_instrument},
    )
    return Components(session=session, client=client, poller=poller)
