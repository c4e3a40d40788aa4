"""Classified errors ("problems") that carry their own HTTP rendering data.

A Problem's code is a float whose integer part is the HTTP status and whose
fraction identifies the specific problem, e.g. 400.4 for a bad header.
"""

from collections.abc import Callable
from types import SimpleNamespace
from typing import Any, ClassVar


class Problem(Exception):
    """A publicly-consumable error with a status, message and detail payload."""

    user: ClassVar[SimpleNamespace]
    internal: ClassVar[SimpleNamespace]

    def __init__(
        self,
        problem_code: float,
        message: str,
        problem_details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.problem_code = problem_code
        self.message = message
        self.problem_details = problem_details
        self._frozen = True

    def __setattr__(self, name: str, value: Any) -> None:
        # dunder slots (__traceback__, __notes__, ...) stay writable for the runtime
        if getattr(self, "_frozen", False) and not name.startswith("__"):
            raise AttributeError(f"{type(self).__name__} is immutable")
        super().__setattr__(name, value)

    @property
    def http_code(self) -> int:
        return int(self.problem_code)

    def __repr__(self) -> str:
        return f"Problem({self.problem_code!r}, {self.message!r})"


class OpenRosaProblem(Exception):
    """Marks an existing Problem to be rendered as an OpenRosa XML envelope."""

    def __init__(self, problem: Problem) -> None:
        if not isinstance(problem, Problem):
            raise TypeError("OpenRosaProblem can only wrap a Problem")
        super().__init__(problem.message)
        self.problem = problem


def problem(code: float, render: Callable[[dict[str, Any]], str]) -> Callable[..., Problem]:
    """Build a factory producing Problems with a fixed code.

    The keyword arguments given to the factory become the problem details and
    are passed to ``render`` to produce the message.
    """

    def factory(**details: Any) -> Problem:
        return Problem(code, render(details), details or None)

    factory.__name__ = f"problem_{str(code).replace('.', '_')}"
    return factory


def _nothing_if_none(value: Any) -> str:
    return "(nothing)" if value is None else str(value)


user = SimpleNamespace(
    unparseable=problem(
        400.1,
        lambda d: f"Could not parse the given data ({d['raw_length']} chars) as {d['format']}.",
    ),
    invalid_header=problem(
        400.4,
        lambda d: (
            f"An expected header field ({d['field']}) did not match the expected "
            f"format (got: {_nothing_if_none(d.get('value'))})."
        ),
    ),
    not_found=problem(404.1, lambda _: "Could not find the resource you were looking for."),
)

internal = SimpleNamespace(
    unknown=problem(
        500.1, lambda _: "An unknown internal problem has occurred. Please try again later."
    ),
    empty_response=problem(
        500.3,
        lambda _: "The resource returned no data. This is likely a developer problem.",
    ),
)

Problem.user = user
Problem.internal = internal
