"""
File name selection.

Exactly one selector is active per adapter. Precedence when building one:
custom predicate, then regular expression, then accept everything.
Selectors only ever look at the base name, never at the filesystem.
"""

import re
from dataclasses import dataclass
from typing import Any, Callable, Optional

from domains.file_ingest.errors import ConfigurationError


class Selector:
    """Predicate deciding whether a candidate file name is forwarded."""

    def accepts(self, file_name: str) -> bool:
        raise NotImplementedError

    def describe(self) -> str:
        return type(self).__name__


@dataclass(frozen=True)
class CustomPredicate(Selector):
    predicate: Callable[[str], Any]

    def __post_init__(self):
        if not callable(self.predicate):
            raise ConfigurationError("Filter must be a function")

    def accepts(self, file_name: str) -> bool:
        return bool(self.predicate(file_name))

    def describe(self) -> str:
        name = getattr(self.predicate, "__name__", repr(self.predicate))
        return f"CustomPredicate({name})"


@dataclass(frozen=True)
class Pattern(Selector):
    regex: "re.Pattern[str]"

    @classmethod
    def compile(cls, pattern: str) -> "Pattern":
        try:
            return cls(re.compile(pattern))
        except re.error as e:
            raise ConfigurationError(f"Invalid regular expression {pattern!r}: {e}") from e

    def accepts(self, file_name: str) -> bool:
        # Unanchored: a match anywhere in the name counts
        return self.regex.search(file_name) is not None

    def describe(self) -> str:
        return f"Pattern({self.regex.pattern!r})"


@dataclass(frozen=True)
class AcceptAll(Selector):
    def accepts(self, file_name: str) -> bool:
        return True


def build_selector(filter: Any = None, regex: Optional[str] = None) -> Selector:
    """
    Build the selector for the given configuration values.

    Both inputs are validated even though only one of them wins, so a bad
    pattern is reported at configuration time whether or not a filter is set.

    Args:
        filter: Callable receiving the base name; truthy result accepts the file
        regex: Regular expression searched in the base name

    Returns:
        The active selector

    Raises:
        ConfigurationError: filter is not callable or regex does not compile
    """
    predicate = CustomPredicate(filter) if filter is not None else None
    pattern = Pattern.compile(regex) if regex else None

    if predicate is not None:
        return predicate
    if pattern is not None:
        return pattern
    return AcceptAll()
