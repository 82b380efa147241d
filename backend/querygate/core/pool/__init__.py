"""
Connection pooling, query execution, transactions and health probes.
"""

from .connect import classify_error, connect, connector
from .executor import QueryResult, cursor_to_dicts, execute, query
from .health import HealthMonitor, HealthStatus, check_all
from .lease import Lease
from .manager import ConnectionPool, PoolManager, PoolStats
from .transaction import Transaction, run_transaction

__all__ = [
    "ConnectionPool",
    "HealthMonitor",
    "HealthStatus",
    "Lease",
    "PoolManager",
    "PoolStats",
    "QueryResult",
    "Transaction",
    "check_all",
    "classify_error",
    "connect",
    "connector",
    "cursor_to_dicts",
    "execute",
    "query",
    "run_transaction",
]
