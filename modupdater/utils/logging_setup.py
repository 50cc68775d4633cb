import sys

import loguru
from loguru import logger

from modupdater.utils.app_info import AppInfo
from modupdater.utils.obfuscate_message import obfuscate_message


def formatter(record: "loguru.Record") -> str:
    """Custom formatter for loguru logger"""
    format_string = (
        "[{level}]"
        "[{time:YYYY-MM-DD HH:mm:ss}]"
        "[{process.id}]"
        "[{thread.name}]"
        "[{module}]"
        "[{function}][{line}]"
        " : "
    )

    record["extra"]["obfuscated_message"] = obfuscate_message(record["message"])
    return format_string + "{extra[obfuscated_message]}\n{exception}"


def setup_logging(debug: bool = False) -> None:
    """
    Replace loguru's default sink with a per-run log file and a WARNING+ stderr sink.

    Debug level is used for the file sink when ``debug`` is set or when the
    DEBUG marker file exists in the application storage folder.

    We have log_file (foo.log) and old_log_file (foo.old.log). If old_log_file exists,
    it is removed and log_file is renamed to it, so the previous run is always kept.
    """
    app_info = AppInfo()
    debug_mode = debug or app_info.debug_file.is_file()

    app_info.user_log_folder.mkdir(parents=True, exist_ok=True)
    log_file = app_info.user_log_folder / (app_info.app_name + ".log")
    old_log_file = app_info.user_log_folder / (app_info.app_name + ".old.log")
    if old_log_file.exists() and old_log_file.is_file():
        old_log_file.unlink()
    if log_file.exists() and log_file.is_file():
        log_file.rename(old_log_file)

    # Remove the default stderr logger
    logger.remove()

    # Create the file logger
    logger.add(log_file, level="DEBUG" if debug_mode else "INFO", format=formatter)

    # Add a "WARNING" or higher stderr logger
    logger.add(
        sys.stderr,
        level="WARNING",
        format=formatter,
        colorize=False,
    )

    logger.info(f"Initializing {app_info.app_name}: {app_info.app_version}")
