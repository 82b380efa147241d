from typing import Any

from querygate.schemas import MutationOut


def ok(rows: list[dict[str, Any]]) -> dict[str, Any]:
    """Envelope for read endpoints."""
    return {"status": "ok", "data": rows}


def success(message: str) -> MutationOut:
    return MutationOut(message=message)
