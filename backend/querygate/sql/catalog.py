from typing import NamedTuple, TypeVar

from querygate.models import ProductTypeEnum

# Upper bound for any list endpoint; limit parameters are clamped to it.
MAX_ROWS = 1000


class Statement(NamedTuple):
    name: str
    postgres: str
    mysql: str


class Step(NamedTuple):
    sql: str
    # The affected count of a plan is the sum over its counted steps.
    counted: bool = False


class Plan(NamedTuple):
    """Ordered steps of one mutation, per product, run in one transaction."""

    name: str
    postgres: tuple[Step, ...]
    mysql: tuple[Step, ...]


_T = TypeVar("_T")


def _for_product(postgres: _T, mysql: _T, product_type: ProductTypeEnum) -> _T:
    if product_type == ProductTypeEnum.POSTGRES:
        return postgres
    if product_type == ProductTypeEnum.MYSQL:
        return mysql
    raise ValueError(f"Unsupported product_type: {product_type}")


def get_sql(statement: Statement, product_type: ProductTypeEnum) -> str:
    return _for_product(statement.postgres, statement.mysql, product_type)


def get_steps(plan: Plan, product_type: ProductTypeEnum) -> tuple[Step, ...]:
    return _for_product(plan.postgres, plan.mysql, product_type)
