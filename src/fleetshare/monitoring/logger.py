import json
import logging
import sys
import traceback

import loguru
from fastapi import Request
from fastapi import Response
from loguru import logger

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "<bold><white>{message}</white></bold> | <dim>{extra}</dim> {stacktrace}"
)


# Loggers configuration runs at import time -- src/fleetshare/__init__.py -- and again from create_app
def configure_logger(level: str = "INFO", serialize: bool = False):
    """
    Configure loguru logger with a single stdout sink.

    Args:
        level: Minimum log level written to stdout
        serialize: Emit each record as a JSON document instead of the colored line format
    """
    # Suppress per-request transport logging; StoreClient logs its own calls
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    logger.remove()  # remove the default logger

    if serialize:
        logger.add(sink=sys.stdout, level=level, diagnose=False, serialize=True)
        return

    logger.add(
        sink=sys.stdout,
        level=level,
        diagnose=False,
        format=LOG_FORMAT,
        filter=process_log_record,
    )


def process_log_record(record: "loguru.Record") -> "loguru.Record":
    r"""
    Inject transformed metadata into each log record before they are passed to the formatter.

    1. Serialize the "extra" field to JSON so that renders on a single line.
    2. For error logs, add a traceback with \r instead of \n so that log collectors do not
       split the traceback into multiple log events.
    """
    extra = record["extra"]

    # serialize "extra" field to JSON
    if extra:
        record["extra"] = json.dumps(extra, default=str)

    # add stacktrace to log record
    record["stacktrace"] = ""
    if record["exception"]:
        err = record["exception"]
        stacktrace = get_formatted_stacktrace(err, replace_newline_character_with_carriage_return=True)
        record["stacktrace"] = stacktrace

    return record


def get_formatted_stacktrace(loguru_record_exception, replace_newline_character_with_carriage_return: bool) -> str:
    """Get the formatted stacktrace for the current exception."""
    exc_type, exc_value, exc_traceback = loguru_record_exception
    stacktrace_: list[str] = traceback.format_exception(exc_type, exc_value, exc_traceback)
    stacktrace: str = "".join(stacktrace_)
    if replace_newline_character_with_carriage_return:
        stacktrace = stacktrace.replace("\n", "\r")
    return stacktrace


def log_request_info(request: Request):
    """Log the request info."""
    request_info = {
        "method": request.method,
        "path": request.url.path,
        "path_params": dict(request.path_params.items()),
        "client": str(request.client),
    }
    logger.debug("Request received", http_request=request_info)


def log_response_info(response: Response):
    """Log the response info."""
    response_info = {
        "status_code": response.status_code,
        "headers": dict(response.headers.items()),
    }
    logger.debug("Response sent", http_response=response_info)
