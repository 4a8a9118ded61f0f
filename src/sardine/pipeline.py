"""
Timed, strictly ordered execution of build stages.
"""
from __future__ import annotations

import time
import typing as t

from .core import ToolUnavailableError
from .pretty_utils import format_elapsed, print_with_style

if t.TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from .core import Context
    from .dependencies import Dependency


StageFunc = t.Callable[['Context'], 'str | None']


class StageResult(t.NamedTuple):
    message: str
    elapsed_ms: int
    info: str | None


class Stage:
    """
    A single named unit of work. @func receives the build Context and may
    return a short annotation for the log line.
    """
    def __init__(self,
                 message: str,
                 func: StageFunc,
                 dependencies: Iterable[Dependency] = ()):
        self.message = message
        self.func = func
        self.dependencies = set(dependencies)

    def __repr__(self):
        return f'{self.__class__.__name__}({self.message!r})'

    def is_available(self):
        return all(d.satisfied for d in self.dependencies)


def elapsed_ms(start: float) -> int:
    """
    Milliseconds since @start, a time.perf_counter() value.
    """
    return round((time.perf_counter() - start) * 1000)


def measure_time(func: t.Callable[[], str | None], msg: str) -> StageResult:
    """
    Run @func, then log how long it took along with @msg and whatever @func
    returned.
    """
    start = time.perf_counter()
    info = func()
    elapsed = elapsed_ms(start)
    print_with_style(format_elapsed(elapsed, msg, info))
    return StageResult(msg, elapsed, info)


class Pipeline:
    """
    A fixed sequence of Stages. Running stops at the first exception; there
    is no resuming or skipping.
    """
    def __init__(self, stages: Sequence[Stage]):
        self.stages = list(stages)

    def missing_dependencies(self) -> list[Dependency]:
        missing: dict[str, Dependency] = {}
        for stage in self.stages:
            for dep in stage.dependencies:
                if not dep.satisfied:
                    missing.setdefault(str(dep), dep)
        return list(missing.values())

    def check(self):
        """
        Raise ToolUnavailableError if any Stage cannot run.
        """
        if missing := self.missing_dependencies():
            raise ToolUnavailableError(missing)

    def run(self, context: Context) -> list[StageResult]:
        self.check()
        start = time.perf_counter()
        results = [
            measure_time(lambda stage=stage: stage.func(context), stage.message)
            for stage in self.stages
        ]
        print_with_style(f'\nRelease built successfully\t[{elapsed_ms(start)} ms]', style='green')
        return results
