"""JSON codec boundary.

Thin wrappers around Pydantic's JSON serialisation that convert every
codec failure into a :class:`~delivery.exceptions.DeliveryError` at the
point it happens:

* :func:`encode` -- ``JSON_ENCODE`` when a model cannot be serialised.
* :func:`decode` -- ``JSON_PARSE_ERROR`` when the text is not JSON,
  ``JSON_ERROR`` when it is JSON of the wrong shape.
"""

from __future__ import annotations

from typing import TypeVar

from pydantic import BaseModel, ValidationError
from pydantic_core import PydanticSerializationError

from delivery.exceptions import classify, from_json_encode_error

M = TypeVar("M", bound=BaseModel)


def encode(model: BaseModel) -> str:
    """Serialise *model* to compact JSON text.

    Raises:
        DeliveryError: ``JSON_ENCODE`` if serialisation fails.
    """
    try:
        return model.model_dump_json()
    except (PydanticSerializationError, TypeError, ValueError) as exc:
        raise from_json_encode_error(exc) from exc


def decode(text: str | bytes, model_cls: type[M]) -> M:
    """Parse *text* and validate it as *model_cls*.

    Raises:
        DeliveryError: ``JSON_PARSE_ERROR`` for malformed JSON,
            ``JSON_ERROR`` for JSON that does not match the model.
    """
    try:
        return model_cls.model_validate_json(text)
    except ValidationError as exc:
        raise classify(exc) from exc
