from enum import Enum


class EntityKind(str, Enum):
    BLOCK = "block"
    TRANSACTION = "transaction"
    ADDRESS = "address"
    NOT_FOUND = "not_found"


class ProbeStatus(str, Enum):
    FOUND = "found"
    NOT_FOUND = "not_found"
    FAILED = "failed"


class HistorySource(str, Enum):
    PRIMARY = "primary"      # per-address index
    FALLBACK = "fallback"    # bounded global scan, may under-report
