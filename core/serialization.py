from typing import Any, Dict

from pydantic import BaseModel


def _dump(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, dict):
        return {key: _dump(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_dump(item) for item in value]
    return value


def _add_legacy_ids(value: Any) -> Any:
    if isinstance(value, dict):
        out = {key: _add_legacy_ids(item) for key, item in value.items()}
        if "id" in out and "_id" not in out:
            out["_id"] = out["id"]
        return out
    if isinstance(value, list):
        return [_add_legacy_ids(item) for item in value]
    return value


def envelope(settings, message: str = None, **payload: Any) -> Dict[str, Any]:
    """Build a success body: ``{"success": true, <payload>, "message"?}``.

    This is the only place ``_id`` aliases are attached.
    """
    body: Dict[str, Any] = {"success": True}
    body.update(_dump(payload))
    if message is not None:
        body["message"] = message
    if settings.LEGACY_ID_ALIAS:
        body = _add_legacy_ids(body)
    return body
