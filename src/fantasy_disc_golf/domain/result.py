"""Outcome values for operations whose failures are expected business results, not exceptions."""

from dataclasses import dataclass
from typing import ClassVar, Literal


@dataclass(frozen=True, slots=True)
class Ok[T]:
    value: T
    ok: ClassVar[Literal[True]] = True


@dataclass(frozen=True, slots=True)
class Err[E]:
    error: E
    ok: ClassVar[Literal[False]] = False


type Result[T, E] = Ok[T] | Err[E]
