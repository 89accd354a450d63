import subprocess
from contextlib import nullcontext
from pathlib import Path
from typing import List, Protocol

from dorado16s.logging_config import logger


class CommandRunner(Protocol):
    """Runs external tools. Failing commands raise subprocess.CalledProcessError."""

    def run(self, args: List[str], stdout: Path | None = None, stdin: Path | None = None, append: bool = False) -> None: ...

    def pipe(self, producer: List[str], consumer: List[str], out_file: Path) -> None: ...

    def capture(self, args: List[str]) -> str: ...


class SubprocessRunner:
    def run(self, args: List[str], stdout: Path | None = None, stdin: Path | None = None, append: bool = False) -> None:
        logger.info("Running: %s", " ".join(args))

        # Stream to terminal when no output file is given
        if stdout is None and stdin is None:
            subprocess.run(args, check=True)
            return

        mode = "ab" if append else "wb"
        with open(stdout, mode) if stdout is not None else nullcontext() as out:
            with open(stdin, "rb") if stdin is not None else nullcontext() as inp:
                subprocess.run(
                    args,
                    stdin=inp,
                    stdout=out,
                    stderr=subprocess.STDOUT if append else None,
                    check=True,
                )

    def pipe(self, producer: List[str], consumer: List[str], out_file: Path) -> None:
        logger.info("Running: %s | %s > %s", " ".join(producer), " ".join(consumer), out_file)

        # Popen context managers close the pipe and wait, so both processes are reaped on errors
        with open(out_file, "wb") as out, subprocess.Popen(producer, stdout=subprocess.PIPE) as producer_proc:
            with subprocess.Popen(consumer, stdin=producer_proc.stdout, stdout=out) as consumer_proc:
                # Let the producer receive SIGPIPE if the consumer exits early
                producer_proc.stdout.close()
                consumer_returncode = consumer_proc.wait()
            producer_returncode = producer_proc.wait()

        if producer_returncode != 0:
            raise subprocess.CalledProcessError(producer_returncode, producer)
        if consumer_returncode != 0:
            raise subprocess.CalledProcessError(consumer_returncode, consumer)

    def capture(self, args: List[str]) -> str:
        try:
            res = subprocess.run(
                args,
                check=False,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
            )
        except OSError as e:
            logger.warning("Could not run %s: %s", args[0], e)
            return ""
        return res.stdout.decode("utf-8", errors="replace")
