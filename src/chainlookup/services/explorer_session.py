from __future__ import annotations

import logging
from typing import Optional

from chainlookup.config.settings import FALLBACK_SCAN_LIMIT
from chainlookup.core.models import ReconciledHistory, ResolvedEntity
from chainlookup.services.generation import GenerationGuard
from chainlookup.services.reconciler_service import ReconcilerService
from chainlookup.services.resolver_service import ResolverService


logger = logging.getLogger(__name__)


class ExplorerSession:
    """
    Per-user view state for search and address history.

    A search or history load that is overtaken by a newer one of the same kind
    returns None and leaves the current state untouched, whatever order the
    responses arrive in.
    """

    def __init__(self, resolver: ResolverService, reconciler: ReconcilerService) -> None:
        self.resolver = resolver
        self.reconciler = reconciler
        self._search: GenerationGuard[ResolvedEntity] = GenerationGuard()
        self._history: GenerationGuard[ReconciledHistory] = GenerationGuard()

    @property
    def current_result(self) -> Optional[ResolvedEntity]:
        return self._search.value

    @property
    def current_history(self) -> Optional[ReconciledHistory]:
        return self._history.value

    def search(self, query: str) -> Optional[ResolvedEntity]:
        token = self._search.begin()
        try:
            result = self.resolver.resolve(query)
        except Exception as e:
            if not self._search.is_current(token):
                logger.debug("dropping failure of superseded search %d: %s", token, e)
                return None
            raise
        if not self._search.commit(token, result):
            logger.debug("dropping result of superseded search %d", token)
            return None
        return result

    def load_history(
        self,
        address: str,
        fallback_scan_limit: int = FALLBACK_SCAN_LIMIT,
    ) -> Optional[ReconciledHistory]:
        token = self._history.begin()
        try:
            history = self.reconciler.reconcile(address, fallback_scan_limit)
        except Exception as e:
            if not self._history.is_current(token):
                logger.debug("dropping failure of superseded history load %d: %s", token, e)
                return None
            raise
        if not self._history.commit(token, history):
            logger.debug("dropping result of superseded history load %d", token)
            return None
        return history
