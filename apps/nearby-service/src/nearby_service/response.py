from typing import Any


def list_response(items: list[Any]) -> dict[str, Any]:
    return {"data": items, "count": len(items)}


def data_response(data: Any) -> dict[str, Any]:
    return {"data": data}


def error_response(message: str) -> dict[str, Any]:
    return {"error": message}
