"""
Record field serializers.

``err_serializer`` turns an exception into a plain dict that follows its
chain of causes, so a wrapped error can be logged (or rendered) as a
nested "Caused by" structure.
"""

import traceback
from typing import Any


def _resolve_cause(err: BaseException) -> Any:
    """
    Find the cause of an error.

    A ``cause`` attribute wins over ``__cause__``. Callable causes are
    invoked. Anything raised while resolving counts as no cause.
    """
    try:
        cause = getattr(err, "cause", None)
        if callable(cause) and not isinstance(cause, BaseException):
            cause = cause()
    except Exception:
        return None
    if cause is None:
        cause = err.__cause__
    return cause


def format_stack(err: BaseException) -> str:
    """First line ``Name: message``, then the traceback frames if any."""
    message = str(err)
    head = f"{type(err).__name__}: {message}" if message else type(err).__name__
    if err.__traceback__ is None:
        return head
    frames = "".join(traceback.format_tb(err.__traceback__)).rstrip("\n")
    return f"{head}\n{frames}"


def err_serializer(
    err: Any, show_stack: bool = True, _seen: set[int] | None = None
) -> Any:
    """
    Serialize an error and its causes.

    Non-exceptions are returned unchanged. For exceptions only the fields
    that are present among name, message, context, code, signal and stack
    are kept. ``message`` is the error's own message; structured context
    (``SrvError.context``) goes to ``context``.

    Args:
        err: Value to serialize
        show_stack: Include the formatted stack

    Returns:
        dict for exceptions, the input otherwise
    """
    if not isinstance(err, BaseException):
        return err

    seen = _seen if _seen is not None else set()
    seen.add(id(err))

    data: dict[str, Any] = {"name": type(err).__name__}
    message = getattr(err, "message", None)
    if not isinstance(message, str) or not message:
        message = str(err)
    if message:
        data["message"] = message
    context = getattr(err, "context", None)
    if isinstance(context, dict) and context:
        data["context"] = dict(context)
    code = getattr(err, "code", None)
    if code:
        data["code"] = code
    signal = getattr(err, "signal", None)
    if signal:
        data["signal"] = signal
    if show_stack:
        data["stack"] = format_stack(err)

    cause = _resolve_cause(err)
    if cause is not None and id(cause) not in seen:
        data["cause"] = err_serializer(cause, show_stack, seen)
    return data


DEFAULT_SERIALIZERS = {"err": err_serializer}
