from __future__ import annotations

import dataclasses
import logging
import multiprocessing as mp
import random
import traceback
from dataclasses import dataclass
from typing import Callable, Optional, Union, cast

import dill as pickle  # type: ignore[import-untyped]

from arbinterop import common, decoder as dec, tree as vt, util
from arbinterop.strategy import ArbStrategy, Config

MPContext = Union[mp.context.ForkContext, mp.context.ForkServerContext, mp.context.SpawnContext]

Test = Callable[[dec.Value], None]


@dataclass
class StatusBase:
    wid: int


@dataclass
class Bug(StatusBase):
    message: str


@dataclass
class Exhausted(StatusBase):
    cases: int
    message: str


@dataclass
class Passed(StatusBase):
    cases: int


@dataclass
class Failed(Passed):
    buffer: bytes
    original: bytes
    steps: int
    message: str


def run_test(test: Test[dec.Value], value: dec.Value, quiet: bool = False) -> Optional[str]:
    """Run test on value, return formatted exception or None if the test passed."""
    try:
        if quiet:
            with util.disable_logging():
                test(value)
        else:
            test(value)
    except Exception:  # noqa: BLE001
        return traceback.format_exc()
    return None


def shrink(
    tree: vt.ValueTree[dec.Value],
    test: Test[dec.Value],
    max_iters: int,
    message: Optional[str] = None,
) -> tuple[int, Optional[str]]:
    """
    Minimize failing tree in place.

    Simplify while the test keeps failing, back off by one step as soon as it passes.
    Return number of accepted simplifications and the failure message of the final value.

    Arguments:
    ---------
    tree:      Tree whose current value fails test.
    test:      Test to run. Raising an exception is considered a failure.
    max_iters: Maximum number of simplifications to try.
    message:   Failure message of the current value.
    """
    iters = 0
    while iters < max_iters and tree.simplify():
        iters += 1
        result = run_test(test, tree.current(), quiet=True)
        if result is not None:
            message = result
            continue
        tree.complicate()

    if iters >= max_iters:
        logging.info("Shrink limit of %d iterations reached", max_iters)

    return tree.depth, message


def run_cases(
    wid: int,
    strategy: ArbStrategy[dec.Value],
    test: Test[dec.Value],
    config: Config,
) -> StatusBase:
    for case in range(1, config.cases + 1):
        try:
            tree = strategy.new_tree(config)
        except common.GenerationExhaustedError as e:
            return Exhausted(wid=wid, cases=case - 1, message=str(e))

        message = run_test(test, tree.current())
        if message is None:
            continue

        logging.debug("Case %d failed, shrinking %s", case, tree)
        steps, message = shrink(tree, test, config.max_shrink_iters, message)
        return Failed(
            wid=wid,
            cases=case,
            buffer=tree.buffer,
            original=tree.original,
            steps=steps,
            message=message or "",
        )

    return Passed(wid=wid, cases=config.cases)


def worker(
    wid: int,
    payload: bytes,
    result_queue: mp.Queue[StatusBase],
) -> None:
    try:
        strategy, test, config = pickle.loads(payload)  # noqa: S301
        result_queue.put(run_cases(wid=wid, strategy=strategy, test=test, config=config))
    except KeyboardInterrupt:  # pragma: no cover
        raise
    except Exception:  # noqa: BLE001
        result_queue.put(Bug(wid=wid, message=traceback.format_exc()))


class Runner:
    def __init__(
        self,
        config: Optional[Config] = None,
        num_workers: int = 1,
        start_method: Optional[str] = None,
    ) -> None:
        """
        Check properties against values generated by a strategy.

        Arguments:
        ---------
        config:       Runner configuration (default: Config()).
        num_workers:  Number of worker processes. With 1, cases are run in-process.
        start_method: Multiprocessing start method to use (spawn, forkserver or fork).
                      Defaults to "spawn".
        """
        if num_workers < 1:
            raise common.OutOfBoundsError(f"Invalid number of workers ({num_workers=})")

        self._config = config or Config()
        self._num_workers = num_workers
        self._mp_ctx: MPContext = (
            mp.get_context("fork")
            if start_method == "fork"
            else mp.get_context("forkserver")
            if start_method == "forkserver"
            else mp.get_context("spawn")
        )

    @property
    def config(self) -> Config:
        return self._config

    def run(self, strategy: ArbStrategy[dec.Value], test: Test[dec.Value]) -> int:
        """
        Run test on config.cases generated values and return the number of passed cases.

        Raise PropertyFailedError with the minimized value if test fails and
        GenerationExhaustedError if the strategy cannot produce values.
        """
        if self._num_workers == 1:
            result = run_cases(wid=0, strategy=strategy, test=test, config=self._config)
        else:
            result = self._run_parallel(strategy, test)
        return self._report(strategy, result)

    def _run_parallel(
        self,
        strategy: ArbStrategy[dec.Value],
        test: Test[dec.Value],
    ) -> StatusBase:
        seed = (
            self._config.seed
            if self._config.seed is not None
            else self._config.rng.randrange(2**32)
        )
        share, remainder = divmod(self._config.cases, self._num_workers)
        result_queue: mp.Queue[StatusBase] = self._mp_ctx.Queue()

        logging.info(
            "Running %d cases on %d workers (seed=%d)",
            self._config.cases,
            self._num_workers,
            seed,
        )

        workers = []
        for wid in range(self._num_workers):
            config = dataclasses.replace(
                self._config,
                cases=share + (1 if wid < remainder else 0),
                seed=seed + wid,
                rng=random.Random(),
            )
            p = self._mp_ctx.Process(
                target=worker,
                args=(wid, pickle.dumps((strategy, test, config)), result_queue),
            )
            p.start()
            workers.append(p)

        results = [result_queue.get() for _ in workers]

        for p in workers:
            p.join(timeout=1)

        return _merge(sorted(results, key=lambda r: r.wid))

    def _report(self, strategy: ArbStrategy[dec.Value], result: StatusBase) -> int:
        if isinstance(result, Bug):
            raise common.WorkerError(f"Worker {result.wid} failed:\n{result.message}")

        if isinstance(result, Exhausted):
            raise common.GenerationExhaustedError(
                f"Generation failed after {result.cases} cases: {result.message}",
            )

        if isinstance(result, Failed):
            value = strategy.tree_from(result.buffer).current()
            logging.info(
                "Property failed after %d cases, shrunk in %d steps",
                result.cases,
                result.steps,
            )
            raise common.PropertyFailedError(
                f"Property failed after {result.cases} cases ({result.steps} shrink steps)\n"
                f"Minimal failing input: {value!r}\n"
                f"{util.hexdump('Minimal buffer:', result.buffer)}\n"
                f"{result.message}",
                value=value,
                buffer=result.buffer,
                original=result.original,
                steps=result.steps,
                cause=result.message,
            )

        assert isinstance(result, Passed), f"Unhandled result type: {type(result)}"
        logging.debug("Passed %d cases", result.cases)
        return result.cases


def _merge(results: list[StatusBase]) -> StatusBase:
    for r in results:
        if isinstance(r, (Bug, Exhausted)):
            return r

    failures = [r for r in results if isinstance(r, Failed)]
    if failures:
        return min(failures, key=lambda r: (len(r.buffer), r.buffer))

    return Passed(
        wid=0,
        cases=sum(cast(Passed, r).cases for r in results),
    )


def given(
    strategy: ArbStrategy[dec.Value],
    config: Optional[Config] = None,
    num_workers: int = 1,
) -> Callable[[Test[dec.Value]], Callable[[], None]]:
    """
    Turn test taking a generated value into a test function without arguments.

    Arguments:
    ---------
    strategy:    Strategy to draw values from.
    config:      Runner configuration (default: fresh Config() per run).
    num_workers: Number of worker processes.
    """

    def decorator(test: Test[dec.Value]) -> Callable[[], None]:
        def wrapper() -> None:
            Runner(config, num_workers=num_workers).run(strategy, test)

        # Do not expose the signature of test, pytest would look for a fixture named after it
        wrapper.__name__ = test.__name__
        wrapper.__qualname__ = test.__qualname__
        wrapper.__doc__ = test.__doc__
        wrapper.__module__ = test.__module__
        return wrapper

    return decorator
