"""Session control for the kt language. A session owns the global scope, the heap and the evaluator, and runs source
text through lexer -> parser -> evaluator, either from a file or line by line in command-line mode.
"""

from kitler.core.builtins import register_builtins
from kitler.core.evaluator import Evaluator
from kitler.core.lexical import TokenKind, tokenize
from kitler.core.memory import Heap
from kitler.core.parser import Parser
from kitler.core.values import Scope
from kitler.lang.error import ErrorHandler, GenericException


class Session:
    """Governs a kt session. Bindings made by one run stay visible to the next, which is what the REPL relies on."""
    SH_FILE = "<in>"  # command-line interpreter filename

    def __init__(self, error_handler=None, path=SH_FILE, output=None, strict=False, gc_threshold=None):
        self.error_handler = error_handler if error_handler is not None else ErrorHandler(fatal=False)
        self.path = path  # used for error messages

        self.heap = Heap(threshold=gc_threshold)
        self.global_scope = Scope()
        register_builtins(self.heap, self.global_scope)

        self.parser = Parser(self.error_handler)
        self.evaluator = Evaluator(self.heap, self.error_handler, output=output, strict=strict)

        self.closed = False

    @property
    def strict(self):
        return self.evaluator.strict

    @property
    def diagnostics(self):
        return self.error_handler.diagnostics

    def tokens(self, source):
        """Tokens of source. Reports the lexical error, if any, and returns None."""
        tokens = tokenize(source)
        if tokens[-1].kind is TokenKind.ERROR:
            error = tokens[-1]
            self.error_handler.report(GenericException(error.lexeme, line=error.line, column=error.column))
            return None
        return tokens

    def parse(self, source):
        """Program parsed from source, or None if lexing/parsing failed (errors have been reported)."""
        tokens = self.tokens(source)
        if tokens is None:
            return None

        program = self.parser.parse(tokens)
        if self.parser.had_error:
            return None
        return program

    def run(self, source):
        """Runs source in this session's global scope. Returns whether or not it ran: a program with lexical or
        syntax errors is not executed at all, and in strict mode an evaluation error aborts it. Evaluation errors
        in the default mode are reported but do not make the run fail.
        """
        if self.closed:
            raise GenericException("session is closed", internal=True)

        self.error_handler.register_file(self.path, source)
        try:
            program = self.parse(source)
            if program is None:
                return False

            try:
                self.evaluator.execute(program, self.global_scope)
            except GenericException as error:
                if not self.strict or error.internal:
                    raise
                self.error_handler.report(error)
                return False

            return True
        finally:
            self.error_handler.remove_file(self.path)

    def run_file(self, path):
        """Reads path and runs it."""
        try:
            with open(path, "r") as file:
                source = file.read()
        except OSError:
            raise GenericException("'{}' could not be opened", path)

        self.path = path
        return self.run(source)

    def collect(self):
        """Collects every value unreachable from the global scope. Returns the number of values released."""
        return self.heap.collect(self.global_scope)

    def close(self):
        """Releases every value and clears the global scope. The session cannot be run afterwards."""
        if not self.closed:
            self.heap.teardown()
            self.global_scope.bindings.clear()
            self.closed = True

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
