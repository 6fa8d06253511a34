"""Request decoding into pydantic models.

Handlers decode their input through these helpers so that every malformed
request is reported as an ``AppError``:

- ``decode``: JSON body into a model (422 on malformed input)
- ``decode_validated``: ``decode`` followed by the model's own business
  checks, for models declaring the ``Validatable`` contract
- ``decode_query``: query string into a model (400 on invalid values)
- ``decode_form``: urlencoded or multipart form body into a model, with the
  same rules as ``decode_query``
- ``read_json``: raw JSON body without a schema

Example:
    >>> class CreateUser(Validatable):
    ...     email: str = ""
    ...     name: str = ""
    ...
    ...     def validate_payload(self) -> AppError | None:
    ...         if not self.email:
    ...             return AppError.key_required("email")
    ...         return None
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping, Sequence
from types import UnionType
from typing import Any, Union, get_args, get_origin

import orjson
from pydantic import BaseModel, ValidationError
from starlette.datastructures import UploadFile
from starlette.formparsers import MultiPartException
from starlette.requests import ClientDisconnect, Request

from apikit.core.exceptions import AppError, RequestCancelledError
from apikit.core.types import JsonValue

_COLLECTION_TYPES = (list, set, frozenset, tuple)

# Location prefixes FastAPI and pydantic put in front of field names
_LOCATION_PREFIXES = {"body", "query", "path", "header", "cookie", "__root__"}


class Validatable(BaseModel, ABC):
    """Request model with business checks beyond its schema.

    Subclasses implement ``validate_payload`` and are decoded with
    ``decode_validated``.
    """

    @abstractmethod
    def validate_payload(self) -> AppError | None:
        """Check the decoded payload.

        Returns:
            AppError | None: The error to report, or None if the payload
                is acceptable.
        """


def format_validation_errors(errors: Sequence[Mapping[str, Any]]) -> str:
    """Render pydantic error dicts as ``"field: message; field: message"``.

    Args:
        errors: Output of ``ValidationError.errors()`` or
            ``RequestValidationError.errors()``.

    Returns:
        str: One ``field: message`` entry per error.
    """
    parts = []
    for error in errors:
        location = error.get("loc", ())
        field = ".".join(str(loc) for loc in location if loc not in _LOCATION_PREFIXES)
        parts.append(f"{field or 'root'}: {error.get('msg', 'Invalid value')}")
    return "; ".join(parts)


async def _read_body(request: Request) -> bytes:
    """Read the request body, tagging a client disconnect as cancellation."""
    try:
        return await request.body()
    except ClientDisconnect as exc:
        cancelled = RequestCancelledError("read request body", cause=exc)
        raise AppError.bad_request("client disconnected").add_debug(cancelled) from exc


async def read_json(request: Request) -> JsonValue:
    """Decode the request body as JSON without applying a schema.

    Raises:
        orjson.JSONDecodeError: If the body is not valid JSON.
        AppError: If the client disconnected while the body was read.
    """
    return orjson.loads(await _read_body(request))


async def decode[ModelT: BaseModel](request: Request, model: type[ModelT]) -> ModelT:
    """Decode the JSON request body into ``model``.

    Args:
        request: The incoming request.
        model: The pydantic model describing the body.

    Returns:
        ModelT: The decoded payload.

    Raises:
        AppError: 422 if the body is not valid JSON or does not match the
            model, 400 if the client disconnected while it was read.
    """
    raw = await _read_body(request)
    try:
        return model.model_validate_json(raw)
    except ValidationError as exc:
        errors = exc.errors()
        message = "unmarshal request payload"
        if not any(error["type"] == "json_invalid" for error in errors):
            message = f"{message}: {format_validation_errors(errors)}"
        raise AppError.unprocessable_entity(message).add_debug(exc) from exc


async def decode_validated[ValidatedT: Validatable](
    request: Request, model: type[ValidatedT]
) -> ValidatedT:
    """Decode the JSON request body and run the model's business checks.

    Raises:
        AppError: Any error from ``decode``, or the one returned by
            ``validate_payload``.
    """
    payload = await decode(request, model)
    if (error := payload.validate_payload()) is not None:
        raise error
    return payload


def _is_collection_field(model: type[BaseModel], name: str) -> bool:
    """Check whether a model field accepts several values."""
    field = model.model_fields.get(name)
    if field is None:
        return False

    annotation = field.annotation
    if get_origin(annotation) in (Union, UnionType):
        candidates = get_args(annotation)
    else:
        candidates = (annotation,)
    return any(
        get_origin(candidate) in _COLLECTION_TYPES or candidate in _COLLECTION_TYPES
        for candidate in candidates
    )


def _collect_values(
    items: Iterable[tuple[str, str | UploadFile]], model: type[BaseModel]
) -> dict[str, Any]:
    """Group key/value pairs for ``model``, dropping empty strings."""
    values: dict[str, list[str | UploadFile]] = {}
    for key, value in items:
        if value == "":
            continue
        values.setdefault(key, []).append(value)

    return {
        key: grouped if _is_collection_field(model, key) else grouped[-1]
        for key, grouped in values.items()
    }


def _validate_values[ModelT: BaseModel](
    model: type[ModelT], data: dict[str, Any], source: str
) -> ModelT:
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        message = f"invalid {source}: {format_validation_errors(exc.errors())}"
        raise AppError.bad_request(message).add_debug(exc) from exc


def decode_query[ModelT: BaseModel](request: Request, model: type[ModelT]) -> ModelT:
    """Decode the query string into ``model``.

    Unknown keys are ignored and empty values are treated as absent, so the
    field keeps its default. Repeated keys are collected for list, set and
    tuple fields; other fields take the last value.

    Args:
        request: The incoming request.
        model: The pydantic model describing the query parameters.

    Returns:
        ModelT: The decoded parameters.

    Raises:
        AppError: 400 if a value does not match the model.
    """
    data = _collect_values(request.query_params.multi_items(), model)
    return _validate_values(model, data, "query parameters")


async def decode_form[ModelT: BaseModel](
    request: Request, model: type[ModelT]
) -> ModelT:
    """Decode an urlencoded or multipart form body into ``model``.

    Values follow the ``decode_query`` rules. Uploaded files are passed to
    the model as ``UploadFile`` objects.

    Raises:
        AppError: 400 if the form cannot be parsed, a value does not match
            the model, or the client disconnected while the body was read.
    """
    try:
        form = await request.form()
    except ClientDisconnect as exc:
        cancelled = RequestCancelledError("read form body", cause=exc)
        raise AppError.bad_request("client disconnected").add_debug(cancelled) from exc
    except MultiPartException as exc:
        message = f"invalid form data: {exc.message}"
        raise AppError.bad_request(message).add_debug(exc) from exc

    data = _collect_values(form.multi_items(), model)
    return _validate_values(model, data, "form data")
