"""
Validator capability consumed by StoreFacade.

The facade never decides *what* is valid; callers inject a policy object
with a single ``is_validated(value) -> bool`` method. Returning False and
raising are treated the same way: the write is refused.
"""

from typing import Any, Callable, Protocol, runtime_checkable

__all__ = ["Validator", "CallableValidator"]


@runtime_checkable
class Validator(Protocol):
    def is_validated(self, value: Any) -> bool: ...


class CallableValidator:
    """
    Adapt a plain predicate into a Validator.

    Usage::
        facade = StoreFacade(config, validator=CallableValidator(lambda c: c.port > 0))
    """

    def __init__(self, predicate: Callable[[Any], bool]) -> None:
        self._predicate = predicate

    def is_validated(self, value: Any) -> bool:
        return bool(self._predicate(value))
