"""
Structured logging for xcbazel runs.

Bazel, xcodebuild and simctl all write to the inherited stdout, so xcbazel
keeps its own records on stderr (or a file) and renders them either for a
terminal or as one JSON object per line for CI log collectors.

While a toolchain is being prepared and built, every record carries its
Xcode and iOS SDK versions; see `toolchain_context`.
"""

import logging
import sys
import time
import uuid
from contextlib import contextmanager
from datetime import UTC, datetime
from typing import Any, Generator, Optional, TextIO

import structlog

_run_id: Optional[str] = None
_configured = False
_log_file: Optional[TextIO] = None


def get_session_id() -> str:
    """Short id shared by every record of this xcbazel process."""
    global _run_id
    if _run_id is None:
        _run_id = uuid.uuid4().hex[:8]
    return _run_id


def _open_stream(output: str) -> TextIO:
    global _log_file

    _log_file = None
    if output in ("stderr", ""):
        return sys.stderr
    if output == "stdout":
        return sys.stdout

    _log_file = open(output, "a", encoding="utf-8")  # noqa: SIM115
    return _log_file


def _processors(format_type: str, stream: TextIO) -> list[structlog.types.Processor]:
    chain: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]

    if format_type == "json":
        chain += [
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer(sort_keys=True),
        ]
    else:
        # No ANSI escapes when stderr is a CI log file
        chain.append(
            structlog.dev.ConsoleRenderer(
                colors=stream.isatty(),
                exception_formatter=structlog.dev.plain_traceback,
            )
        )
    return chain


def setup_logging(
    level: str = "INFO",
    format_type: str = "console",
    output: str = "stderr",
) -> None:
    """
    (Re)configure structlog and the root logger.

    Safe to call more than once: the CLI configures logging from its flags
    first and again once the settings file has been read.

    Args:
        level: DEBUG, INFO, WARNING, ERROR or CRITICAL; anything else is INFO.
        format_type: "json" for one object per line, otherwise console.
        output: "stderr", "stdout" or the path of a file to append to.
    """
    global _configured

    previous_file = _log_file
    stream = _open_stream(output)
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    structlog.configure(
        processors=_processors(format_type, stream),
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )
    logging.basicConfig(stream=stream, format="%(message)s", level=numeric_level, force=True)
    if previous_file is not None:
        previous_file.close()
    _configured = True

    get_logger(__name__).debug("logging_configured", level=level, format=format_type, output=output)


def get_logger(name: str) -> Any:
    """
    Logger for `name`, bound to this process's session id.

    The logger is a lazy proxy: each call uses the processors configured at
    that moment, so module-level loggers follow a later `setup_logging`.
    """
    if not _configured:
        setup_logging()
    return structlog.get_logger(name, session_id=get_session_id())


@contextmanager
def toolchain_context(xcode_version: str, sdk_version: Optional[str] = None) -> Generator[None, None, None]:
    """Tag every record logged inside the block with the active toolchain."""
    with structlog.contextvars.bound_contextvars(xcode_version=xcode_version, sdk_version=sdk_version):
        yield


def _now() -> str:
    return datetime.now(tz=UTC).isoformat()


def log_execution_start(command: str, config: Optional[dict] = None) -> float:
    """Record that `command` started; returns a perf_counter reading."""
    get_logger("xcbazel.execution").info("execution_started", command=command, config=config, timestamp=_now())
    return time.perf_counter()


def log_execution_end(
    command: str,
    start_time: float,
    status: str = "success",
    result: Optional[dict] = None,
) -> None:
    """Record how `command` finished and how long it took."""
    elapsed_ms = round((time.perf_counter() - start_time) * 1000, 2)
    get_logger("xcbazel.execution").info(
        "execution_completed",
        command=command,
        status=status,
        duration_ms=elapsed_ms,
        result=result,
        timestamp=_now(),
    )


def log_error(
    error: Exception,
    context: Optional[dict] = None,
    command: Optional[str] = None,
) -> None:
    """Record `error` with its traceback."""
    get_logger("xcbazel.error").error(
        "error_occurred",
        error_type=type(error).__name__,
        error_message=str(error),
        command=command,
        context=context,
        timestamp=_now(),
        exc_info=error,
    )


@contextmanager
def log_execution_context(
    command: str,
    config: Optional[dict] = None,
) -> Generator[dict[str, Any], None, None]:
    """
    Bracket a command with started/completed records.

    The yielded dict is logged as the command's result, so the caller can
    fill it in once it knows the outcome:

        with log_execution_context("xcbazel test", options) as outcome:
            summary = runner.run(options)
            outcome.update(summary.to_dict())

    Exceptions are logged and re-raised; the completed record then has
    status "error" and the exception type and message as its result.
    """
    start_time = log_execution_start(command, config)
    outcome: dict[str, Any] = {}
    status = "success"
    try:
        yield outcome
    except Exception as e:
        status = "error"
        outcome = {"error_type": type(e).__name__, "error_message": str(e)}
        log_error(e, command=command)
        raise
    finally:
        log_execution_end(command, start_time, status, outcome or None)
