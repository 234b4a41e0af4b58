"""Error handling for the kt language. Only GenericExceptions should be encountered during running: if another type of
error is raised and makes it all the way to ErrorHandler, it is assumed to be an internal issue.

Parse and evaluation errors are not raised at all in the default mode. They are reported as Diagnostics (line, column,
message) through ErrorHandler.report, and the caller decides what to do with them.
"""

import sys
from collections import namedtuple

from termcolor import colored


Diagnostic = namedtuple("Diagnostic", ["line", "column", "message"])


class GenericException(Exception):
    """Templates an error/warning message so that it can be used to throw a kt error/warning. msg is a str.format
    template whose slots are filled in by exprs (bolded when printed).
    """

    def __init__(self, msg, exprs=None, line=0, column=0, internal=False):
        if exprs is None:
            exprs = []
        if isinstance(exprs, str):
            exprs = [exprs]

        self.template = msg
        self.exprs = [str(expr) for expr in exprs]
        self.msg = msg.format(*self.exprs) if self.exprs else msg

        self.line = line
        self.column = column
        self.internal = internal

        super().__init__(self.msg)

    @property
    def highlighted(self):
        """self.msg with expr snippets bolded."""
        if not self.exprs:
            return self.template
        return self.template.format(*(colored(expr, attrs=["bold"]) for expr in self.exprs))

    @property
    def diagnostic(self):
        return Diagnostic(self.line, self.column, self.msg)


class ErrorHandler:
    """Context manager that will silently suppress Python errors and raise custom kt errors/warnings. Every reported
    error is also kept in self.diagnostics so that a host (GUI, test harness) can inspect it.
    """
    ERROR = "red"
    WARNING = "magenta"

    def __init__(self, fatal=True, stream=None):
        self.fatal = fatal
        self.stream = stream
        self.diagnostics = []
        self.sources = {}  # dict of path: source lines, used for error display
        self.path = None   # file currently being run

    @property
    def out(self):
        return self.stream if self.stream is not None else sys.stderr

    def register_file(self, path, source=None):
        """Registers path (and its source, if known) as the file currently being run."""
        self.path = path
        self.sources[path] = source.split("\n") if source is not None else []

    def remove_file(self, path):
        """Removes path from registered sources. Should be called after the file has been run."""
        self.sources.pop(path, None)
        if self.path == path:
            self.path = None

    def source_line(self, line):
        """Returns registered source line (1-based) of the current file, or None if it is unknown."""
        lines = self.sources.get(self.path, [])
        if 0 < line <= len(lines):
            return lines[line - 1]
        return None

    def diagnose(self, error, warning=False):
        """Returns offending source line with error column underlined, or None if the line is unknown."""
        color = ErrorHandler.WARNING if warning else ErrorHandler.ERROR

        line = self.source_line(error.line)
        if line is None or error.column < 1:
            return None

        start = min(error.column - 1, len(line))
        diagnosis = "  " + line[:start]
        diagnosis += colored(line[start:start + 1], color, attrs=["bold"])
        diagnosis += line[start + 1:] + "\n"
        diagnosis += "  " + " " * start + colored("^", color, attrs=["bold"])

        return diagnosis

    def _location(self, error):
        location = self.path if self.path else "<in>"
        if error.line:
            location += f":{error.line}:{error.column}"
        return colored(location + ": ", attrs=["bold"])

    def warn(self, *args, **kwargs):
        """Generates and prints warning message based on args. Warnings are not recorded as diagnostics."""
        error = GenericException(*args, **kwargs)

        error_msg = self._location(error)
        error_msg += colored("warning: ", ErrorHandler.WARNING, attrs=["bold"]) + error.highlighted
        print(error_msg, file=self.out)

        diagnosis = self.diagnose(error, warning=True)
        if diagnosis:
            print(diagnosis, file=self.out)

    def report(self, error):
        """Records and prints error (a GenericException). Never exits: reported errors are recoverable."""
        self.diagnostics.append(error.diagnostic)

        error_msg = self._location(error)
        if error.internal:
            error_msg += colored("[internal] ", ErrorHandler.ERROR, attrs=["bold"])
        error_msg += colored("error: ", ErrorHandler.ERROR, attrs=["bold"]) + error.highlighted
        print(error_msg, file=self.out)

        if not error.internal:
            diagnosis = self.diagnose(error)
            if diagnosis:
                print(diagnosis, file=self.out)

    def throw(self, error):
        """Reports error and exits if this handler is fatal."""
        self.report(error)
        if self.fatal:
            sys.exit(1)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        do_exit = False
        if exc_type is KeyboardInterrupt:
            self.throw(GenericException("keyboard interrupt"))
        elif exc_type is SystemExit:
            do_exit = True
        elif exc_type is RecursionError:
            self.throw(GenericException("maximum recursion depth exceeded"))
        elif exc_type is GenericException:
            self.throw(exc_val)
        elif exc_type is not None:
            self.throw(GenericException("unknown error: '{}: {}'", [exc_type.__name__, exc_val], internal=True))
            do_exit = True

        return not do_exit
