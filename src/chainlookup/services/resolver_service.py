from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Tuple

from chainlookup.ports.query_service_port import QueryServicePort
from chainlookup.core.enums import EntityKind, ProbeStatus
from chainlookup.core.errors import InvalidQuery, ResolutionFailed
from chainlookup.core.models import (
    AddressMatch,
    BlockMatch,
    NotFound,
    ResolvedEntity,
    TransactionMatch,
)


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProbeOutcome:
    status: ProbeStatus
    entity: Optional[ResolvedEntity] = None
    error: Optional[BaseException] = None


ProbeFn = Callable[[str], ProbeOutcome]


def _run_probe(lookup: Callable[[], Any], wrap: Callable[[Any], ResolvedEntity]) -> ProbeOutcome:
    try:
        found = lookup()
    except Exception as e:
        return ProbeOutcome(ProbeStatus.FAILED, error=e)
    if found is None:
        return ProbeOutcome(ProbeStatus.NOT_FOUND)
    return ProbeOutcome(ProbeStatus.FOUND, entity=wrap(found))


class ResolverService:
    """
    Decides whether an opaque identifier names a block, a transaction or an address.

    - Probes run one at a time in a fixed order: block -> transaction -> address
    - First hit wins; later probes are never issued
    - "not found" advances the chain, any other failure aborts it
    """

    def __init__(self, query: QueryServicePort) -> None:
        self.query = query
        self._probes: List[Tuple[EntityKind, ProbeFn]] = [
            (EntityKind.BLOCK, self._probe_block),
            (EntityKind.TRANSACTION, self._probe_transaction),
            (EntityKind.ADDRESS, self._probe_address),
        ]

    def resolve(self, query: str) -> ResolvedEntity:
        q = (query or "").strip()
        if not q:
            raise InvalidQuery("query must not be empty")

        for kind, probe in self._probes:
            outcome = probe(q)
            if outcome.status is ProbeStatus.FOUND:
                logger.debug("resolved %r as %s", q, kind.value)
                return outcome.entity
            if outcome.status is ProbeStatus.FAILED:
                logger.debug("%s probe for %r failed: %s", kind.value, q, outcome.error)
                raise ResolutionFailed(kind.value, outcome.error) from outcome.error
            logger.debug("%s probe for %r: not found", kind.value, q)

        return NotFound()

    # -------------------------
    # Probes
    # -------------------------

    def _probe_block(self, q: str) -> ProbeOutcome:
        return _run_probe(lambda: self.query.get_block(q), BlockMatch)

    def _probe_transaction(self, q: str) -> ProbeOutcome:
        return _run_probe(lambda: self.query.get_transaction(q), TransactionMatch)

    def _probe_address(self, q: str) -> ProbeOutcome:
        return _run_probe(
            lambda: self.query.get_address_balance(q),
            lambda b: AddressMatch(address=q, balance=b.balance),
        )
