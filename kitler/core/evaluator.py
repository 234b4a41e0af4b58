"""Tree-walking evaluator for the kt language.

evaluate(node, scope) dispatches on the node's class and always returns a Value. Evaluation errors (undefined
variable, calling something that is not a function, bad index...) are reported and evaluate to null so that the
program keeps running; in strict mode they raise GenericException instead.

The only non-local control flow is the return signal: a return statement stores its value in self.return_value, and
every block/loop stops as soon as it is set. The function call that started the body captures and clears it.
`break` is parsed but evaluates to null without leaving the loop.

Known quirks, kept on purpose:
- `and`/`or` evaluate both operands (no short-circuit)
- comparisons read the numeric field of both operands, conditions read the boolean field (see kitler.core.values)
- `+` with a string operand concatenates, but a non-string piece contributes "" ("x" + 5 is "x")
- assigning to a name that is bound nowhere does nothing
"""

import operator
import sys

from kitler.core import numerical
from kitler.core import tree
from kitler.core.values import Function, List, Map, NativeFunction, Scope, String
from kitler.lang.error import GenericException


ARITHMETIC = {
    "-": operator.sub,
    "*": operator.mul,
    "/": numerical.divide,
    "%": numerical.remainder,
}

COMPARISONS = {
    "==": operator.eq,
    "!=": operator.ne,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
}

LOGICAL = {
    "and": lambda left, right: left and right,
    "or": lambda left, right: left or right,
}


class Evaluator:
    """Walks an AST against a chain of scopes. current_scope is the innermost scope being executed: it is the root of
    any collection that happens while the evaluator is running.
    """
    HANDLERS = {
        tree.Program: "_program",
        tree.Block: "_block",
        tree.IncludeDirective: "_include",
        tree.VarDecl: "_var_decl",
        tree.FuncDecl: "_func_decl",
        tree.If: "_if",
        tree.While: "_while",
        tree.For: "_for",
        tree.Return: "_return",
        tree.Break: "_break",
        tree.Assign: "_assign",
        tree.BinaryOp: "_binary_op",
        tree.UnaryOp: "_unary_op",
        tree.Call: "_call",
        tree.MemberAccess: "_member_access",
        tree.IndexAccess: "_index_access",
        tree.Literal: "_literal",
        tree.Identifier: "_identifier",
        tree.ListLiteral: "_list_literal",
        tree.MapLiteral: "_map_literal",
        tree.ProjectSpace: "_reserved",
        tree.ClassDecl: "_reserved",
        tree.EventDecl: "_reserved",
        tree.Switch: "_reserved",
        tree.Case: "_reserved",
        tree.NewInstance: "_reserved",
    }

    def __init__(self, heap, error_handler=None, output=None, strict=False):
        self.heap = heap
        self.error_handler = error_handler
        self.strict = strict
        self._output = output

        self.current_scope = None
        self.return_value = None
        self.diagnostics = []

    @property
    def output(self):
        return self._output if self._output is not None else sys.stdout

    def execute(self, program, scope):
        """Evaluates program in scope (normally the global scope). self.diagnostics only holds the errors of this
        program. Clears the return signal afterwards, since a top-level return only stops the program.
        """
        self.current_scope = scope
        self.return_value = None
        self.diagnostics = []
        try:
            return self.evaluate(program, scope)
        finally:
            self.return_value = None

    def evaluate(self, node, scope):
        if node is None:
            return self.heap.null()

        handler = self.HANDLERS.get(type(node))
        if handler is None:
            raise GenericException("cannot evaluate '{}'", type(node).__name__, node.line, node.column, internal=True)
        return getattr(self, handler)(node, scope)

    # error handling and coercion

    def _fail(self, node, msg, exprs=None):
        """Evaluation error: raises in strict mode, otherwise reports it and evaluates to null."""
        error = GenericException(msg, exprs, line=node.line, column=node.column)
        if self.strict:
            raise error

        self.diagnostics.append(error.diagnostic)
        if self.error_handler is not None:
            self.error_handler.report(error)
        return self.heap.null()

    def _number(self, value, node):
        if self.strict and not value.coercible("number"):
            raise GenericException("expected a number, got {}", value.type_name, node.line, node.column)
        return value.number

    def _boolean(self, value, node):
        if self.strict and not value.coercible("boolean"):
            raise GenericException("expected a boolean, got {}", value.type_name, node.line, node.column)
        return value.boolean

    # blocks

    def _program(self, node, scope):
        result = self.heap.null()
        for stmt in node.statements:
            self.heap.maybe_collect(scope)  # between top-level statements nothing is held outside a scope

            result = self.evaluate(stmt, scope)
            if self.return_value is not None:
                break
        return result

    def _block(self, node, scope):
        result = self.heap.null()
        for stmt in node.statements:
            result = self.evaluate(stmt, scope)
            if self.return_value is not None:
                break
        return result

    def _enter(self, block, scope):
        """Runs block in scope, making scope the current scope meanwhile."""
        previous = self.current_scope
        self.current_scope = scope
        try:
            return self._block(block, scope)
        finally:
            self.current_scope = previous

    # statements

    def _include(self, node, scope):
        return self.heap.null()

    def _reserved(self, node, scope):
        return self.heap.null()

    def _var_decl(self, node, scope):
        value = self.evaluate(node.initializer, scope)
        scope.define(node.name, value)
        return value

    def _func_decl(self, node, scope):
        function = self.heap.function(node.name, node.params, node.body, scope)
        scope.define(node.name, function)
        return function

    def _if(self, node, scope):
        condition = self.evaluate(node.condition, scope)

        if self._boolean(condition, node.condition):
            return self._enter(node.then_branch, Scope(scope))
        if node.else_branch is not None:
            return self._enter(node.else_branch, Scope(scope))
        return self.heap.null()

    def _while(self, node, scope):
        while self._boolean(self.evaluate(node.condition, scope), node.condition):
            self._enter(node.body, Scope(scope))
            if self.return_value is not None:
                break
        return self.heap.null()

    def _for(self, node, scope):
        iterable = self.evaluate(node.iterable, scope)

        if isinstance(iterable, List):
            items = list(iterable.elements)
        elif isinstance(iterable, Map):
            items = [self.heap.string(key) for key in iterable.entries]
        else:
            return self._fail(node.iterable, "cannot iterate over {}", iterable.type_name)

        for item in items:
            body_scope = Scope(scope)
            body_scope.define(node.iterator, item)
            self._enter(node.body, body_scope)
            if self.return_value is not None:
                break
        return self.heap.null()

    def _return(self, node, scope):
        self.return_value = self.evaluate(node.value, scope)
        return self.return_value

    def _break(self, node, scope):
        return self.heap.null()

    def _assign(self, node, scope):
        value = self.evaluate(node.value, scope)
        target = node.target

        if isinstance(target, tree.Identifier):
            if not scope.assign(target.name, value):
                member = self._dotted(target.name, scope) if "." in target.name else None
                if member is not None:
                    member[0].entries[member[1]] = value
                elif self.strict:
                    raise GenericException("assignment to undeclared variable '{}'", target.name, target.line,
                                           target.column)
        elif isinstance(target, tree.IndexAccess):
            self._store(self.evaluate(target.obj, scope), self.evaluate(target.index, scope), value, target)
        elif isinstance(target, tree.MemberAccess):
            self._store(self.evaluate(target.obj, scope), self.heap.string(target.member), value, target)

        return value

    # expressions

    def _literal(self, node, scope):
        if isinstance(node.value, bool):
            return self.heap.boolean(node.value)
        if isinstance(node.value, str):
            return self.heap.string(node.value)
        if node.value is None:
            return self.heap.null()
        return self.heap.number(node.value)

    def _identifier(self, node, scope):
        value = scope.lookup(node.name)
        if value is None and "." in node.name:
            member = self._dotted(node.name, scope)
            if member is not None:
                value = member[0].entries.get(member[1])
        if value is None:
            return self._fail(node, "Undefined variable: {}", node.name)
        return value

    @staticmethod
    def _dotted(name, scope):
        """Splits an unbound dotted name a.b.c into (map bound to a.b, "c"), or None if a.b is not a map."""
        head, *path = name.split(".")
        container = scope.lookup(head)
        for key in path[:-1]:
            if not isinstance(container, Map):
                return None
            container = container.entries.get(key)

        if not isinstance(container, Map):
            return None
        return container, path[-1]

    def _list_literal(self, node, scope):
        return self.heap.list([self.evaluate(element, scope) for element in node.elements])

    def _map_literal(self, node, scope):
        return self.heap.map({key: self.evaluate(value, scope) for key, value in node.entries.items()})

    def _binary_op(self, node, scope):
        left = self.evaluate(node.left, scope)
        right = self.evaluate(node.right, scope)
        op = node.operator

        if op == "+":
            if isinstance(left, String) or isinstance(right, String):
                return self.heap.string(_text(left) + _text(right))
            return self.heap.number(self._number(left, node.left) + self._number(right, node.right))

        if op in ARITHMETIC:
            return self.heap.number(ARITHMETIC[op](self._number(left, node.left), self._number(right, node.right)))
        if op in COMPARISONS:
            return self.heap.boolean(COMPARISONS[op](self._number(left, node.left), self._number(right, node.right)))
        if op in LOGICAL:
            return self.heap.boolean(LOGICAL[op](self._boolean(left, node.left), self._boolean(right, node.right)))

        raise GenericException("unknown operator '{}'", op, node.line, node.column, internal=True)

    def _unary_op(self, node, scope):
        operand = self.evaluate(node.operand, scope)

        if node.operator == "-":
            return self.heap.number(-self._number(operand, node.operand))
        return self.heap.boolean(not self._boolean(operand, node.operand))

    def _call(self, node, scope):
        reported = len(self.diagnostics)
        callee = self.evaluate(node.callee, scope)
        callee_failed = len(self.diagnostics) > reported
        args = [self.evaluate(arg, scope) for arg in node.args]

        if isinstance(callee, NativeFunction):
            result = callee.fn(self, args)
            return result if result is not None else self.heap.null()
        if isinstance(callee, Function):
            return self.call(callee, args)

        if callee_failed:
            return callee  # already reported
        name = node.callee.name if isinstance(node.callee, tree.Identifier) else callee.display()
        return self._fail(node, "'{}' is not callable", name)

    def call(self, function, args):
        """Calls user function with already evaluated args. Parameters are bound positionally; missing arguments
        leave their parameter unbound and extra arguments are ignored.
        """
        call_scope = Scope(function.closure)
        for name, arg in zip(function.params, args):
            call_scope.define(name, arg)

        self._enter(function.body, call_scope)

        result = self.return_value if self.return_value is not None else self.heap.null()
        self.return_value = None
        return result

    def _member_access(self, node, scope):
        obj = self.evaluate(node.obj, scope)

        if isinstance(obj, Map):
            if node.member in obj.entries:
                return obj.entries[node.member]
            return self._fail(node, "key '{}' not found", node.member)
        return self.heap.null()

    def _index_access(self, node, scope):
        container = self.evaluate(node.obj, scope)
        index = self.evaluate(node.index, scope)

        if isinstance(container, List):
            position = self._position(container, index, node)
            if position is None:
                return self._fail(node, "index {} out of range", index.display())
            return container.elements[position]

        if isinstance(container, Map):
            if not isinstance(index, String):
                return self._fail(node.index, "map keys must be strings, got {}", index.type_name)
            if index.value not in container.entries:
                return self._fail(node, "key '{}' not found", index.value)
            return container.entries[index.value]

        return self._fail(node, "cannot index {}", container.type_name)

    def _position(self, container, index, node):
        position = numerical.index(self._number(index, node.index))
        if position is None or not 0 <= position < len(container.elements):
            return None
        return position

    def _store(self, container, index, value, node):
        if isinstance(container, List):
            position = self._position(container, index, node)
            if position is None:
                self._fail(node, "index {} out of range", index.display())
            else:
                container.elements[position] = value

        elif isinstance(container, Map):
            if isinstance(index, String):
                container.entries[index.value] = value
            else:
                self._fail(node, "map keys must be strings, got {}", index.type_name)

        else:
            self._fail(node, "cannot index {}", container.type_name)


def _text(value):
    """Concatenation piece: strings contribute their text, anything else contributes nothing."""
    return value.value if isinstance(value, String) else ""
