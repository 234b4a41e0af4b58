"""Native functions exposed to kt programs. Each one receives the evaluator (for its heap and output sink) and the
list of evaluated arguments, and returns a single Value.
"""


def console_write(evaluator, args):
    """Writes args separated by spaces, then a newline."""
    evaluator.output.write(" ".join(arg.display() for arg in args) + "\n")
    return evaluator.heap.null()


def _extreme(evaluator, args, better):
    if not args:
        return evaluator.heap.null()

    result = args[0].number
    for arg in args[1:]:
        if better(arg.number, result):
            result = arg.number
    return evaluator.heap.number(result)


def max_(evaluator, args):
    return _extreme(evaluator, args, lambda candidate, current: candidate > current)


def min_(evaluator, args):
    return _extreme(evaluator, args, lambda candidate, current: candidate < current)


BUILTINS = {
    "Console.Write": console_write,
    "Max": max_,
    "Min": min_,
}


def register_builtins(heap, scope, builtins=None):
    """Binds every native function of builtins (default BUILTINS) in scope."""
    for name, fn in (builtins if builtins is not None else BUILTINS).items():
        scope.define(name, heap.native(name, fn))
