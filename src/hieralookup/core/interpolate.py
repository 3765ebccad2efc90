"""
Scope variable interpolation in data values.

Strings read from data sources may reference scope variables as
`%{name}`. Dotted names dig into nested hashes (`%{facts.os.family}`) and
a leading `::` (top scope) is ignored. Unknown variables interpolate to the
empty string, and `%{}` yields nothing, which is how a literal `%{` is
written in data.
"""

import collections.abc as _abc
import logging as _logging
import re as _re
import typing as _typing

_logger = _logging.getLogger(__name__)

_VARIABLE_RE = _re.compile(r"%\{([^}]*)\}")


def _resolve(name: str, scope: _abc.Mapping[str, _typing.Any]) -> str:
    name = name.strip()
    if not name:
        return ""
    if name.startswith("::"):
        name = name[2:]

    current: _typing.Any = scope
    for segment in name.split("."):
        if not isinstance(current, _abc.Mapping) or segment not in current:
            _logger.debug("Interpolation variable '%s' is not in scope", name)
            return ""
        current = current[segment]

    if current is None:
        return ""
    if isinstance(current, bool):
        return "true" if current else "false"
    return str(current)


def interpolate(value: _typing.Any, scope: _abc.Mapping[str, _typing.Any]) -> _typing.Any:
    """
    Replace `%{...}` references in strings, recursing into arrays and hashes.

    Non-string scalars and undef are returned unchanged. Containers are
    rebuilt only when something inside them changed.
    """
    if isinstance(value, str):
        if "%{" not in value:
            return value
        return _VARIABLE_RE.sub(lambda match: _resolve(match.group(1), scope), value)
    if isinstance(value, list):
        items = [interpolate(item, scope) for item in value]
        return value if all(a is b for a, b in zip(items, value)) else items
    if isinstance(value, _abc.Mapping):
        entries = {key: interpolate(item, scope) for key, item in value.items()}
        if all(entries[key] is item for key, item in value.items()):
            return value
        return entries
    return value
