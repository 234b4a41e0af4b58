import io
import unittest

from kitler.core.lexical import tokenize
from kitler.core.parser import Parser, parse
from kitler.core.tree import (Assign, BinaryOp, Block, Call, For, FuncDecl, Identifier, If, IncludeDirective,
                              IndexAccess, ListLiteral, Literal, MapLiteral, MemberAccess, Program, Return, UnaryOp,
                              VarDecl, While)
from kitler.lang.error import ErrorHandler


def statements(source):
    program, had_error = parse(tokenize(source))
    assert not had_error, source
    return program.statements


def write(*args):
    return Call(Identifier("Console.Write"), list(args))


class ParserTestCase(unittest.TestCase):

    def test_had_error(self):
        should_fail = [
            "NewVar = 5",
            "if x run: Console.Write(1)",
            "while x Console.Write(1) end",
            "NewFunc f( (",
            "(1 + 2",
            "[1, 2",
            "{a 1}",
            "for 3 in xs run: end",
            ")",
        ]
        for case in should_fail:
            self.assertTrue(parse(tokenize(case))[1], case)

        should_pass = ["", "NewVar x", "x = 1", "including Graphics #", "Console.Write()", "return", "break"]
        for case in should_pass:
            self.assertFalse(parse(tokenize(case))[1], case)

    def test_precedence(self):
        one, two, three = Literal(1.0), Literal(2.0), Literal(3.0)
        cases = {
            "1 + 2 * 3": BinaryOp("+", one, BinaryOp("*", two, three)),
            "(1 + 2) * 3": BinaryOp("*", BinaryOp("+", one, two), three),
            "1 - 2 - 3": BinaryOp("-", BinaryOp("-", one, two), three),
            "1 < 2 == true": BinaryOp("==", BinaryOp("<", one, two), Literal(True)),
            "a or b and c": BinaryOp("or", Identifier("a"), BinaryOp("and", Identifier("b"), Identifier("c"))),
            "-1 % 3": BinaryOp("%", UnaryOp("-", one), three),
            "!a": UnaryOp("!", Identifier("a")),
        }
        for case, expected in cases.items():
            self.assertEqual([expected], statements(case), case)

    def test_declarations(self):
        cases = {
            "NewVar x = 10": VarDecl("x", Literal(10.0)),
            "NewVar x": VarDecl("x"),
            "NewFunc add(a, b) (\n  return a + b\n)":
                FuncDecl("add", ["a", "b"], Block([Return(BinaryOp("+", Identifier("a"), Identifier("b")))])),
            "NewAsync tick() (\n  return\n)": FuncDecl("tick", [], Block([Return()]), is_async=True),
            "including Graphics #": IncludeDirective("Graphics", True),
            "including Physics": IncludeDirective("Physics", False),
        }
        for case, expected in cases.items():
            self.assertEqual([expected], statements(case), case)

    def test_control_flow(self):
        cases = {
            "if x > 1 run:\n  Console.Write(x)\nelse:\n  Console.Write(0)\nend":
                If(BinaryOp(">", Identifier("x"), Literal(1.0)), Block([write(Identifier("x"))]),
                   Block([write(Literal(0.0))])),
            "if ok run: end": If(Identifier("ok"), Block()),
            "while i < 3 run:\n  i = i + 1\nend":
                While(BinaryOp("<", Identifier("i"), Literal(3.0)),
                      Block([Assign(Identifier("i"), BinaryOp("+", Identifier("i"), Literal(1.0)))])),
            "foreach item in [1, 2] run: Console.Write(item) end":
                For("item", ListLiteral([Literal(1.0), Literal(2.0)]), Block([write(Identifier("item"))])),
        }
        for case, expected in cases.items():
            self.assertEqual([expected], statements(case), case)

    def test_postfix(self):
        cases = {
            'Console.Write("Hello", name)': write(Literal("Hello"), Identifier("name")),
            "xs[0] = 1": Assign(IndexAccess(Identifier("xs"), Literal(0.0)), Literal(1.0)),
            "m .size": MemberAccess(Identifier("m"), "size"),
            "m.size": Identifier("m.size"),
            '{name: "kt", "v": 1}': MapLiteral({"name": Literal("kt"), "v": Literal(1.0)}),
        }
        for case, expected in cases.items():
            self.assertEqual([expected], statements(case), case)

    def test_diagnostics(self):
        parser = Parser()
        program = parser.parse(tokenize("NewVar x = 1 ) NewVar y = 2"))

        self.assertTrue(parser.had_error)
        self.assertEqual([(1, 14, "Unexpected token ')'")], parser.diagnostics)
        self.assertEqual([VarDecl("x", Literal(1.0)), VarDecl("y", Literal(2.0))], program.statements)

        parser.parse(tokenize("if x run: Console.Write(1)"))
        self.assertEqual("Expected 'end' after if block", parser.diagnostics[-1].message)

        parser.parse(tokenize("NewVar ok = 1"))
        self.assertFalse(parser.had_error)
        self.assertEqual([], parser.diagnostics)

    def test_break_warning(self):
        stream = io.StringIO()
        error_handler = ErrorHandler(fatal=False, stream=stream)
        parser = Parser(error_handler)

        parser.parse(tokenize("while true run:\n  break\nend"))
        self.assertFalse(parser.had_error)
        self.assertEqual([], error_handler.diagnostics)
        self.assertIn("warning: ", stream.getvalue())
        self.assertIn(":2:3: ", stream.getvalue())

    def test_positions(self):
        program, __ = parse(tokenize("NewVar x = 1\n  Console.Write(x)"))

        self.assertIsInstance(program, Program)
        self.assertEqual((1, 1), (program.statements[0].line, program.statements[0].column))
        self.assertEqual((2, 3), (program.statements[1].line, program.statements[1].column))

    def test_display(self):
        program, __ = parse(tokenize("NewVar x = 1 + 2"))

        expected = ("Program(nodes=[\n"
                    "    VarDecl(name='x', nodes=[\n"
                    "        BinaryOp(operator='+', nodes=[\n"
                    "            Literal(value=1.0),\n"
                    "            Literal(value=2.0)\n"
                    "        ])\n"
                    "    ])\n"
                    "])")
        self.assertEqual(expected, program.display())


if __name__ == '__main__':
    unittest.main()
