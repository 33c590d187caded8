"""
encache — Result Codec

Converts the ordered results of one function call to and from JSON text.

Results are carried as a tuple of values. Because JSON loses most type
information, decoding takes a result signature: one type annotation per
result position. Each decoded element is validated into its positional type
with pydantic, so models, dataclasses, datetimes and typed containers come
back as the concrete types the function returned.

Example:
    codec = ResultCodec()
    text = codec.serialize((3, "three"))          # '[3,"three"]'
    codec.deserialize(text, (int, str))           # (3, "three")

    def divmod_text(a: int, b: int) -> tuple[int, int]: ...
    codec.deserialize("[1,2]", signature_of(divmod_text))
"""

from __future__ import annotations

import json
import logging
import math
from collections.abc import Callable, Sequence
from functools import lru_cache
from typing import Any, get_args, get_origin, get_type_hints

from pydantic import PydanticSchemaGenerationError, TypeAdapter, ValidationError
from pydantic_core import PydanticSerializationError

from ..errors import CacheDecodingError, CacheEncodingError

logger = logging.getLogger(__name__)

# Ordered results of one function invocation
Results = tuple[Any, ...]

# One type annotation per result position
ResultSignature = tuple[Any, ...]

_RESULTS_ADAPTER: TypeAdapter[list[Any]] = TypeAdapter(list[Any])


@lru_cache(maxsize=256)
def _adapter_for(annotation: Any) -> TypeAdapter[Any]:
    """Build (and memoize) a validator for one result position."""
    return TypeAdapter(annotation)


def _validate(annotation: Any, item: Any) -> Any:
    try:
        adapter = _adapter_for(annotation)
    except TypeError:
        # unhashable annotation, skip the memo
        adapter = TypeAdapter(annotation)
    return adapter.validate_python(item)


def signature_of(func: Callable[..., Any]) -> ResultSignature | None:
    """
    Derive the result signature from a callable's return annotation.

    - ``-> tuple[A, B]`` gives ``(A, B)``
    - ``-> T`` gives ``(T,)``, so ``-> None`` gives ``(NoneType,)``
    - no annotation, or a variadic ``tuple[A, ...]``, gives None (untyped)

    Args:
        func: Function whose results will be cached

    Returns:
        Positional result types, or None when they cannot be determined
    """
    try:
        hints = get_type_hints(func)
    except (NameError, TypeError) as e:
        logger.debug(
            f"Could not resolve return annotation of {func!r}: {e}",
            extra={"error": str(e)},
        )
        return None

    if "return" not in hints:
        return None

    annotation = hints["return"]
    if get_origin(annotation) is tuple:
        args = get_args(annotation)
        if len(args) == 2 and args[1] is Ellipsis:
            return None
        return tuple(args)
    return (annotation,)


def _has_non_finite(value: Any) -> bool:
    if isinstance(value, float):
        return not math.isfinite(value)
    if isinstance(value, dict):
        return any(_has_non_finite(v) for v in value.values())
    if isinstance(value, (list, tuple, set, frozenset)):
        return any(_has_non_finite(v) for v in value)
    return False


def signature_from_values(values: Sequence[Any]) -> ResultSignature:
    """Signature matching the runtime types of an existing result tuple."""
    return tuple(type(value) for value in values)


class ResultCodec:
    """JSON codec for result tuples with positional type reconstruction."""

    def serialize(self, values: Sequence[Any]) -> str:
        """
        Encode results as a JSON array.

        Args:
            values: Ordered results of one call

        Returns:
            JSON text

        Raises:
            CacheEncodingError: If any value is not representable in JSON
        """
        try:
            payload = _RESULTS_ADAPTER.dump_json(list(values))
            # pydantic writes NaN and +-inf as null, which would not decode back
            if _has_non_finite(_RESULTS_ADAPTER.dump_python(list(values))):
                raise ValueError("NaN and infinite floats have no JSON representation")
            return payload.decode("utf-8")
        except (PydanticSerializationError, TypeError, ValueError) as e:
            logger.error(
                f"Failed to serialize cached results: {e}",
                extra={"value_types": [type(v).__name__ for v in values], "error": str(e)},
            )
            raise CacheEncodingError(
                f"Results are not JSON-serializable: {e}",
                details={"value_types": [type(v).__name__ for v in values], "error": str(e)},
            ) from e

    def deserialize(self, text: str | bytes, signature: Sequence[Any] | None = None) -> Results:
        """
        Decode a JSON array back into a result tuple.

        Args:
            text: JSON text produced by serialize()
            signature: Expected type per position (None returns plain JSON values)

        Returns:
            Tuple of results, typed according to the signature

        Raises:
            CacheDecodingError: If the text is malformed, is not an array,
                has the wrong arity, or holds a value of the wrong type
        """
        if isinstance(text, bytes):
            text = text.decode("utf-8", errors="replace")

        try:
            decoded = json.loads(text)
        except ValueError as e:
            raise CacheDecodingError(
                f"Malformed cached results: {e}",
                details={"data_preview": text[:100], "error": str(e)},
            ) from e

        if not isinstance(decoded, list):
            raise CacheDecodingError(
                "Cached results must be a JSON array",
                details={"found": type(decoded).__name__},
            )

        if signature is None:
            return tuple(decoded)

        if len(decoded) != len(signature):
            raise CacheDecodingError(
                f"Cached results have {len(decoded)} values, signature expects {len(signature)}",
                details={"found": len(decoded), "expected": len(signature)},
            )

        results = []
        for position, (item, annotation) in enumerate(zip(decoded, signature, strict=True)):
            try:
                results.append(_validate(annotation, item))
            except ValidationError as e:
                raise CacheDecodingError(
                    f"Cached result at position {position} does not match {annotation!r}",
                    details={"position": position, "errors": e.errors(include_url=False)},
                ) from e
            except PydanticSchemaGenerationError as e:
                raise CacheDecodingError(
                    f"Cannot rebuild values of type {annotation!r}",
                    details={"position": position, "error": str(e)},
                ) from e
        return tuple(results)
