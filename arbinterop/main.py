from __future__ import annotations

import argparse
import hashlib
import logging
import sys
from pathlib import Path
from typing import Callable, Generic

from arbinterop import common, decoder as dec, runner, util
from arbinterop.strategy import ArbStrategy, Config


class Interop(Generic[dec.Value]):
    def __init__(self, strategy: ArbStrategy[dec.Value], test: Callable[[dec.Value], None]):
        self.strategy = strategy
        self.test = test

    def __call__(self) -> None:
        parser = argparse.ArgumentParser(
            description="Property-based testing with byte-buffer decoders",
        )

        subparsers = parser.add_subparsers(dest="subcommands")

        parser_check = subparsers.add_parser(
            "check",
            help="Check property on randomly generated values.",
        )
        parser_check.set_defaults(func=self.check)

        parser_check.add_argument(
            "--cases",
            type=int,
            default=256,
            help="Number of cases to run (default: %(default)s).",
        )
        parser_check.add_argument(
            "--size",
            type=int,
            help="Size hint for random buffers (default: strategy size).",
        )
        parser_check.add_argument(
            "--max-retries",
            type=int,
            default=64,
            help="Maximum number of buffers drawn per case (default: %(default)s).",
        )
        parser_check.add_argument(
            "--max-shrink-iters",
            type=int,
            default=4096,
            help="Maximum number of shrink steps (default: %(default)s).",
        )
        parser_check.add_argument(
            "--seed",
            type=int,
            help="Seed for random number generator.",
        )
        parser_check.add_argument(
            "-j",
            "--num-workers",
            type=int,
            default=1,
            help="Number of parallel workers (default: %(default)s).",
        )
        parser_check.add_argument(
            "--start-method",
            type=str,
            choices=["spawn", "forkserver", "fork"],
            default="spawn",
            help="Start method to be used for multiprocessing (default: %(default)s).",
        )
        parser_check.add_argument(
            "--failure-dir",
            type=Path,
            help="Directory to store minimized failing buffers in.",
        )

        parser_show = subparsers.add_parser(
            "show",
            help="Run property on stored buffers, print values and results and exit.",
        )
        parser_show.set_defaults(func=self.show)

        parser_show.add_argument(
            "buffers",
            type=Path,
            nargs="+",
            help="List of files or directories containing buffers.",
        )

        args = parser.parse_args()

        if not args.subcommands:
            parser.exit(3)

        logging.basicConfig(format="[%(asctime)s] %(message)s", level=logging.INFO)
        args.func(args)

    def check(self, args: argparse.Namespace) -> None:
        r = runner.Runner(
            config=Config(
                cases=args.cases,
                size=args.size,
                max_retries=args.max_retries,
                max_shrink_iters=args.max_shrink_iters,
                seed=args.seed,
            ),
            num_workers=args.num_workers,
            start_method=args.start_method,
        )
        try:
            cases = r.run(self.strategy, self.test)
        except common.PropertyFailedError as e:
            logging.info("%s", e)
            if args.failure_dir:
                write_sample(args.failure_dir, e.buffer)
            sys.exit(1)
        except common.GenerationExhaustedError as e:
            logging.error("Generation exhausted: %s", e)
            sys.exit(2)
        except KeyboardInterrupt:
            sys.exit("\nUser cancellation. Exiting.\n")

        logging.info("Passed %d cases", cases)
        sys.exit(0)

    def show(self, args: argparse.Namespace) -> None:
        files = [p for p in args.buffers if p.is_file()] + [
            f for p in args.buffers if p.is_dir() for f in sorted(p.glob("*")) if f.is_file()
        ]
        for f in files:
            data = f.read_bytes()
            try:
                tree = self.strategy.tree_from(data)
            except common.DecodeError as e:
                logging.info("Invalid buffer %s: %s", f.name, e)
                continue

            message = runner.run_test(self.test, tree.current())
            logging.info(
                "\n========================================================================\n"
                "%s: %r\n%s\n%s",
                f.name,
                tree.current(),
                util.hexdump("Buffer:", data),
                message or "Passed",
            )


def write_sample(directory: Path, buf: bytes, prefix: str = "failure-") -> Path:
    m = hashlib.sha256()
    m.update(buf)

    if not directory.exists():
        directory.mkdir(parents=True)
        logging.info("Failure dir created (%s)", directory)

    path = directory / (prefix + m.hexdigest())
    path.write_bytes(buf)
    logging.info("sample was written to %s", path)
    return path
