# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2025-12-07
# Description: dependencies.py
# -----------------------------------------------------------------------------
from functools import lru_cache

from api.AppContainer import AppContainer
from services.KBContextService import KBContextService
from services.KBHealthService import KBHealthService
from services.KBIngestService import KBIngestService
from services.KBQueryService import KBQueryService


@lru_cache
def get_container() -> AppContainer:
    # built on first request, not at import, so tests can override services
    return AppContainer()

def get_health_service() -> KBHealthService:
    # use the singleton service from the container
    return get_container().health_service

def get_ingest_service() -> KBIngestService:
    # use the singleton service from the container
    return get_container().ingest_service

def get_query_service() -> KBQueryService:
    # use the singleton service from the container
    return get_container().query_service

def get_context_service() -> KBContextService:
    # use the singleton service from the container
    return get_container().context_service
