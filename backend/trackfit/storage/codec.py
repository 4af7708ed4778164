"""JSON encoding shared by the store implementations."""

from __future__ import annotations

import json
from typing import Any

import structlog

from trackfit.errors import ErrorCode, StorageError
from trackfit.messages import message_for

logger = structlog.get_logger()


def encode_value(key: str, value: Any) -> str:  # noqa: ANN401
    """Serialize a value to JSON text, raising STORAGE_SAVE_ERROR if it is not JSON-compatible."""
    try:
        return json.dumps(value)
    except (TypeError, ValueError) as exc:
        logger.error("failed to serialize storage value", key=key, error=str(exc))
        raise StorageError(
            message_for(ErrorCode.STORAGE_SAVE_ERROR),
            ErrorCode.STORAGE_SAVE_ERROR,
            key=key,
            context={"original_error": str(exc)},
        ) from exc


def decode_value(key: str, raw: str) -> Any:  # noqa: ANN401
    """Parse stored JSON text, raising STORAGE_CORRUPTED when it does not parse."""
    try:
        return json.loads(raw)
    except (json.JSONDecodeError, TypeError) as exc:
        logger.error("failed to parse storage data", key=key)
        raise StorageError(message_for(ErrorCode.STORAGE_CORRUPTED), ErrorCode.STORAGE_CORRUPTED, key=key) from exc


def storage_error(code: ErrorCode, key: str, exc: BaseException | None = None) -> StorageError:
    context = {"original_error": str(exc)} if exc is not None else None
    return StorageError(message_for(code), code, key=key, context=context)
