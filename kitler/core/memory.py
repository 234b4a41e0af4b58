"""Value lifecycle for the kt language: a registry of every live value plus a mark-and-sweep collector.

Every value is created through a Heap factory method, which registers it. A collection marks everything reachable
from a scope chain and releases the rest:

- roots: every binding of every scope on the chain, from the given scope outwards
- references: list elements, map values, and the bindings of a function's closure chain
- sweep: unmarked values are released (payload dropped, alive set to False) and unregistered; marks are cleared

Collection never happens on its own unless a threshold is given, and even then the evaluator only asks for one
between top-level statements, when no value is held outside a scope.
"""

from kitler.core.values import (Boolean, Component, Function, List, Map, NativeFunction, Null, Number, Sprite,
                                String)


class Heap:
    """Registry of live values, owned by a session."""

    def __init__(self, threshold=None):
        self.objects = []
        self.threshold = threshold  # allocations between automatic collections, None to disable
        self.allocations = 0
        self.collections = 0
        self.released = 0           # total released over the heap's lifetime

    def register(self, value):
        self.objects.append(value)
        self.allocations += 1
        return value

    # factories

    def number(self, value):
        return self.register(Number(value))

    def string(self, value):
        return self.register(String(value))

    def boolean(self, value):
        return self.register(Boolean(value))

    def null(self):
        return self.register(Null())

    def list(self, elements=None):
        return self.register(List(elements))

    def map(self, entries=None):
        return self.register(Map(entries))

    def function(self, name, params, body, closure):
        return self.register(Function(name, params, body, closure))

    def native(self, name, fn):
        return self.register(NativeFunction(name, fn))

    def sprite(self, *args, **kwargs):
        return self.register(Sprite(*args, **kwargs))

    def component(self, *args, **kwargs):
        return self.register(Component(*args, **kwargs))

    # collection

    @property
    def live_count(self):
        return len(self.objects)

    def _mark(self, scope):
        """Marks every value reachable from scope's chain. Returns the number of values marked."""
        marked = 0
        gray = []
        seen_scopes = set()

        def mark_scope(root):
            for chained in root.chain():
                if id(chained) in seen_scopes:
                    return
                seen_scopes.add(id(chained))
                gray.extend(chained.bindings.values())

        mark_scope(scope)
        while gray:
            value = gray.pop()
            if value.marked:
                continue

            value.marked = True
            marked += 1

            gray.extend(value.references())
            if isinstance(value, Function) and value.closure is not None:
                mark_scope(value.closure)

        return marked

    def reachable_count(self, scope):
        """Number of values reachable from scope's chain. Leaves no marks behind."""
        count = self._mark(scope)
        for value in self.objects:
            value.marked = False
        return count

    def collect(self, scope):
        """Full mark-and-sweep from scope's chain. Returns the number of values released."""
        self._mark(scope)

        alive = []
        released = 0
        for value in self.objects:
            if value.marked:
                value.marked = False
                alive.append(value)
            else:
                value.release()
                released += 1

        self.objects = alive
        self.allocations = 0
        self.collections += 1
        self.released += released
        return released

    def maybe_collect(self, scope):
        """Collects if the allocation threshold has been reached. Returns the number of values released."""
        if self.threshold is None or self.allocations < self.threshold:
            return 0
        return self.collect(scope)

    def teardown(self):
        """Releases every registered value, reachable or not."""
        for value in self.objects:
            value.release()
        self.released += len(self.objects)
        self.objects = []
