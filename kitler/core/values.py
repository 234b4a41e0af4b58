"""Runtime values and scopes for the kt language.

Values are constructed through kitler.core.memory.Heap so that every one of them is registered with the collector.
Scopes never own their values: a scope only names them, and the heap decides when they are released.

kt is dynamically typed and reads "fields" off values regardless of their type: a comparison reads the numeric field
of both operands, a condition reads the boolean field. Values that have no such field coerce as follows:

    value      number   boolean
    ---------  -------  ---------------
    number     itself   != 0
    boolean    1 / 0    itself
    null       0        false
    string     nan      non-empty
    list/map   nan      non-empty
    function   nan      true

Coercions that fall back to nan or to a non-boolean value are not "natural": Value.coercible reports them so that
strict mode can turn them into errors.
"""

import math

from kitler.core import numerical


class Value:
    """Superclass for all runtime values."""
    type_name = "value"

    def __init__(self):
        self.marked = False
        self.alive = True

    @property
    def number(self):
        return math.nan

    @property
    def boolean(self):
        return True

    def coercible(self, field):
        """Whether or not reading field ('number' or 'boolean') off this value is meaningful."""
        return False

    def references(self):
        """Values directly referenced by this value. Used by the collector's mark phase."""
        return ()

    def release(self):
        """Drops payload. Called by the collector when this value is swept."""
        self.alive = False

    def display(self):
        """Text written by Console.Write."""
        return "<object>"

    def __repr__(self):
        state = "" if self.alive else ", released"
        return f"{type(self).__name__}({self.display()}{state})"


class Number(Value):
    type_name = "number"

    def __init__(self, value):
        super().__init__()
        self.value = float(value)

    @property
    def number(self):
        return self.value

    @property
    def boolean(self):
        return self.value != 0

    def coercible(self, field):
        return field == "number"

    def display(self):
        return numerical.display(self.value)


class String(Value):
    type_name = "string"

    def __init__(self, value):
        super().__init__()
        self.value = value

    @property
    def boolean(self):
        return bool(self.value)

    def release(self):
        super().release()
        self.value = ""

    def display(self):
        return self.value


class Boolean(Value):
    type_name = "boolean"

    def __init__(self, value):
        super().__init__()
        self.value = bool(value)

    @property
    def number(self):
        return 1.0 if self.value else 0.0

    @property
    def boolean(self):
        return self.value

    def coercible(self, field):
        return field == "boolean"

    def display(self):
        return "true" if self.value else "false"


class Null(Value):
    type_name = "null"

    @property
    def number(self):
        return 0.0

    @property
    def boolean(self):
        return False

    def display(self):
        return "null"


class List(Value):
    """Ordered sequence of values."""
    type_name = "list"

    def __init__(self, elements=None):
        super().__init__()
        self.elements = list(elements) if elements else []

    @property
    def boolean(self):
        return bool(self.elements)

    def references(self):
        return self.elements

    def release(self):
        super().release()
        self.elements = []


class Map(Value):
    """Mapping of string keys to values."""
    type_name = "map"

    def __init__(self, entries=None):
        super().__init__()
        self.entries = dict(entries) if entries else {}

    @property
    def boolean(self):
        return bool(self.entries)

    def references(self):
        return self.entries.values()

    def release(self):
        super().release()
        self.entries = {}


class Function(Value):
    """User function. params and body are borrowed from the FuncDecl node; closure is the scope active when the
    function was declared.
    """
    type_name = "function"

    def __init__(self, name, params, body, closure):
        super().__init__()
        self.name = name
        self.params = params
        self.body = body
        self.closure = closure

    def release(self):
        super().release()
        self.closure = None


class NativeFunction(Value):
    """Host-implemented function: fn(evaluator, args) -> Value."""
    type_name = "native function"

    def __init__(self, name, fn):
        super().__init__()
        self.name = name
        self.fn = fn

    def release(self):
        super().release()
        self.fn = None


class Sprite(Value):
    """Reserved: never produced by the evaluator."""
    type_name = "sprite"

    def __init__(self, payload=None, x=0.0, y=0.0, width=0.0, height=0.0):
        super().__init__()
        self.payload = payload
        self.x, self.y = x, y
        self.width, self.height = width, height
        self.velocity_x = self.velocity_y = 0.0

    def release(self):
        super().release()
        self.payload = None


class Component(Value):
    """Reserved: never produced by the evaluator."""
    type_name = "component"

    def __init__(self, component_type, payload=None):
        super().__init__()
        self.component_type = component_type
        self.payload = payload

    def release(self):
        super().release()
        self.payload = None


class Scope:
    """Name to value bindings, linked to the enclosing scope. The parent link is an ordinary reference: a scope
    captured by a closure keeps its whole chain alive for as long as the closure exists.
    """

    def __init__(self, parent=None):
        self.parent = parent
        self.bindings = {}

    def define(self, name, value):
        """Binds name in this scope, overwriting an existing binding of the same scope."""
        self.bindings[name] = value

    def lookup(self, name):
        """Nearest binding of name on the chain, or None."""
        scope = self
        while scope is not None:
            if name in scope.bindings:
                return scope.bindings[name]
            scope = scope.parent
        return None

    def assign(self, name, value):
        """Rebinds the nearest existing binding of name. Returns whether or not one was found."""
        scope = self
        while scope is not None:
            if name in scope.bindings:
                scope.bindings[name] = value
                return True
            scope = scope.parent
        return False

    def chain(self):
        """This scope followed by its ancestors."""
        scope = self
        while scope is not None:
            yield scope
            scope = scope.parent

    def __contains__(self, name):
        return name in self.bindings

    def __repr__(self):
        return f"Scope({sorted(self.bindings)})"
