"""
Enums shared across the gateway: database products, services, health states.
"""

from enum import Enum


class ProductTypeEnum(str, Enum):
    """Supported database product types."""

    POSTGRES = "postgres"
    MYSQL = "mysql"


DEFAULT_PORTS: dict[ProductTypeEnum, int] = {
    ProductTypeEnum.POSTGRES: 5432,
    ProductTypeEnum.MYSQL: 3306,
}


class ServiceEnum(str, Enum):
    """Employee services; each one is a router with its own pool."""

    HR = "hr"
    PAYROLL = "payroll"
    PERFORMANCE = "performance"
    ADMIN = "admin"
    REPORTS = "reports"


class HealthState(str, Enum):
    OK = "ok"
    DEGRADED = "degraded"
    UNAVAILABLE = "unavailable"


class TransactionState(str, Enum):
    """Lifecycle of one transaction on a leased connection."""

    IDLE = "idle"
    BEGAN = "began"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"
