import io
import unittest

from kitler.lang.error import Diagnostic, ErrorHandler, GenericException


class GenericExceptionTestCase(unittest.TestCase):

    def test_msg(self):
        cases = {
            ("Unexpected token '{}'", ")"): "Unexpected token ')'",
            ("Expected '}' after map entries", None): "Expected '}' after map entries",
            ("'{}' could not be opened", ("a.kt",)): "'a.kt' could not be opened",
            ("index {} out of range", (5,)): "index 5 out of range",
        }
        for (msg, exprs), expected in cases.items():
            self.assertEqual(expected, GenericException(msg, exprs).msg, msg)

    def test_diagnostic(self):
        error = GenericException("Undefined variable: {}", "x", line=3, column=7)
        self.assertEqual(Diagnostic(3, 7, "Undefined variable: x"), error.diagnostic)
        self.assertEqual("Undefined variable: x", str(error))


class ErrorHandlerTestCase(unittest.TestCase):

    def setUp(self):
        self.stream = io.StringIO()
        self.error_handler = ErrorHandler(fatal=False, stream=self.stream)

    def test_report(self):
        self.error_handler.report(GenericException("bad {}", "thing", line=1, column=2))

        self.assertEqual([(1, 2, "bad thing")], self.error_handler.diagnostics)
        self.assertIn("error: ", self.stream.getvalue())

    def test_warn(self):
        self.error_handler.warn("careful")

        self.assertEqual([], self.error_handler.diagnostics)
        self.assertIn("warning: ", self.stream.getvalue())

    def test_throw(self):
        self.error_handler.throw(GenericException("recoverable"))
        self.assertEqual(1, len(self.error_handler.diagnostics))

        fatal = ErrorHandler(stream=io.StringIO())
        self.assertRaises(SystemExit, fatal.throw, GenericException("fatal"))

    def test_diagnose(self):
        self.error_handler.register_file("<in>", "NewVar = 1\nx")

        diagnosis = self.error_handler.diagnose(GenericException("Expected variable name", line=1, column=8))
        first, second = diagnosis.split("\n")
        self.assertTrue(first.startswith("  NewVar "))
        self.assertTrue(second.startswith(" " * 9))
        self.assertIn("^", second)

        self.assertIsNone(self.error_handler.diagnose(GenericException("unknown", line=5, column=1)))
        self.assertIsNone(self.error_handler.diagnose(GenericException("no position")))

        self.error_handler.remove_file("<in>")
        self.assertIsNone(self.error_handler.source_line(1))

    def test_context_manager(self):
        with self.error_handler:
            raise GenericException("suppressed")
        self.assertEqual("suppressed", self.error_handler.diagnostics[0].message)

        def unknown():
            with self.error_handler:
                raise ValueError("oops")

        self.assertRaises(ValueError, unknown)
        self.assertIn("[internal]", self.stream.getvalue())

        with self.error_handler:
            raise RecursionError()
        self.assertEqual("maximum recursion depth exceeded", self.error_handler.diagnostics[-1].message)


if __name__ == '__main__':
    unittest.main()
