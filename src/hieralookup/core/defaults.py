"""
Invocation of deferred defaults.

A deferred default is a callable evaluated only when every other layer of
a lookup has failed. Its arity is negotiated from its signature:

- no positional parameters: called as `func()`
- otherwise: called with the attempted names, as a `str` when a single
  name was looked up and as a `list` when several were

The result is never cached; each failed resolution invokes it again.
"""

import inspect as _inspect
import logging as _logging
import typing as _typing

_logger = _logging.getLogger(__name__)

DefaultFunction = _typing.Callable[..., _typing.Any]

_POSITIONAL = (
    _inspect.Parameter.POSITIONAL_ONLY,
    _inspect.Parameter.POSITIONAL_OR_KEYWORD,
    _inspect.Parameter.VAR_POSITIONAL,
)


def accepts_names(func: DefaultFunction) -> bool:
    """True if func takes a positional argument for the names."""
    try:
        signature = _inspect.signature(func)
    except (TypeError, ValueError):
        # Some builtins have no introspectable signature; assume one argument.
        return True
    return any(param.kind in _POSITIONAL for param in signature.parameters.values())


def names_argument(names: _typing.Sequence[str]) -> str | list[str]:
    """Shape the attempted names the way a deferred default receives them."""
    if len(names) == 1:
        return names[0]
    return list(names)


def invoke_default(func: DefaultFunction, names: _typing.Sequence[str]) -> _typing.Any:
    """
    Call a deferred default for a failed lookup.

    Args:
        func: The deferred default.
        names: The names that were attempted, in order.

    Returns:
        Whatever func returns; None is a valid (undef) result.
    """
    if accepts_names(func):
        _logger.debug("Calling deferred default with names %s", list(names))
        return func(names_argument(names))
    _logger.debug("Calling deferred default without arguments")
    return func()
