"""
Statement catalog for the employee services.

Every statement exists in a PostgreSQL (``employees`` schema) and a MySQL
(``employees`` sample database) flavour and takes ``%(name)s`` parameters;
values are never formatted into the SQL text. Mutations are ``Plan``s: a
short ordered list of steps per product.
"""

from .catalog import MAX_ROWS, Plan, Statement, Step, get_sql, get_steps
from . import statements

__all__ = ["MAX_ROWS", "Plan", "Statement", "Step", "get_sql", "get_steps", "statements"]
