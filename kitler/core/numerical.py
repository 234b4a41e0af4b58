"""IEEE-754 double arithmetic for kt numbers. Python raises on division by zero and on fmod of infinities, whereas kt
numbers behave like C doubles: those cases produce inf or nan.
"""

import math


def divide(left, right):
    """left / right with IEEE semantics for a zero divisor."""
    if right == 0:
        if left == 0 or math.isnan(left):
            return math.nan
        return math.copysign(math.inf, left) * math.copysign(1.0, right)
    return left / right


def remainder(left, right):
    """C fmod: result takes the sign of left. nan if right is zero or left is infinite."""
    if right == 0 or math.isinf(left) or math.isnan(left) or math.isnan(right):
        return math.nan
    return math.fmod(left, right)


def display(number):
    """Formats number the way printf's %g does."""
    return "%g" % number


def index(number):
    """Integer part of number, or None if number has none (nan/inf)."""
    if math.isnan(number) or math.isinf(number):
        return None
    return int(number)
