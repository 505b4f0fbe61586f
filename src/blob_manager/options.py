"""Normalization of the ``(options, callback)`` pair accepted by operations."""

import copy
from typing import Any, Callable, Mapping, Optional, Tuple, Union

from pydantic import ValidationError

from .errors import ErrorDescriptor, InvalidOptionsError
from .models import OperationResult, RequestOptions

Callback = Callable[[Any, Any], Any]
OptionsLike = Union[None, Mapping[str, Any], RequestOptions]


def normalize_args(
    options_or_callback: Union[OptionsLike, Callback] = None,
    callback: Optional[Callback] = None,
    result: Optional[Callable[[RequestOptions, Optional[Callback]], Any]] = None,
) -> Tuple[RequestOptions, Optional[Callback]]:
    """
    Resolve the options-or-callback calling convention.

    A callable first argument with no callback is taken as the callback and
    options default to empty. Otherwise the first argument is the options and
    the second the callback. Unknown option keys are not validated; known
    ones must have the right type.

    Args:
        options_or_callback: Options (None, mapping or RequestOptions) or a callback
        callback: Callback when options are given first
        result: Optional continuation invoked synchronously with the pair

    Returns:
        Tuple of (RequestOptions, callback or None)

    Raises:
        InvalidOptionsError: If a known option has the wrong type. The
            resolved callback is attached to the error.
    """
    final_callback = callback
    options = RequestOptions()

    if callable(options_or_callback) and callback is None:
        final_callback = options_or_callback
    elif isinstance(options_or_callback, RequestOptions):
        options = options_or_callback.model_copy(deep=True)
    elif options_or_callback:
        try:
            options = RequestOptions(**copy.deepcopy(dict(options_or_callback)))
        except (TypeError, ValueError, ValidationError) as e:
            raise InvalidOptionsError(
                f"Invalid request options: {e}", callback=final_callback, err=e
            ) from e

    if result is not None:
        result(options, final_callback)
    return options, final_callback


def complete(
    callback: Optional[Callback],
    error: Optional[ErrorDescriptor],
    result: Any = None,
) -> OperationResult:
    """Hand an outcome to the callback (if any) and return it."""
    if callback is not None:
        callback(error, result)
    return OperationResult(error, result)
