"""
Multi-purpose logger used throughout aid_installer
"""

import inspect
import logging
from pydantic import BaseModel


class LogLine(BaseModel):
    """
    Represents a line in the aid_installer log
    """

    caller_file: str
    caller_name: str
    caller_line: int
    level: str
    message: str


class AidInstallerLogger:
    """
    Logger class

    By default the plain message is emitted, which is what an operator watching a package
    install wants to read. With json_output enabled, every line is a serialised LogLine.
    """

    def __init__(self, json_output: bool = False) -> None:
        self.logger = logging.getLogger("aid_installer")
        self.json_output = json_output

    def log(self, debug_message: str, level: int) -> None:
        """
        Log the message at the given level, recording where it was logged from
        """
        if not self.logger.isEnabledFor(level):
            return

        # Collect details about the caller
        curframe = inspect.currentframe()
        calframe = inspect.getouterframes(curframe, 2)
        caller_file = calframe[1][1].replace("\\", "/").split("/")[-1]
        caller_line = calframe[1][2]
        caller_name = calframe[1][3]

        log_line = LogLine(
            caller_file=caller_file,
            caller_name=caller_name,
            caller_line=caller_line,
            level=logging.getLevelName(level),
            message=debug_message,
        )

        if self.json_output:
            self.logger.log(level=level, msg=log_line.model_dump_json())
        else:
            self.logger.log(level=level, msg=log_line.message)
