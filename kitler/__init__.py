"""Kitler (KT) interpreter.

For reference:
- "kt": the scripting language (NewVar/NewFunc declarations, if/while/for ... run: ... end blocks, <-- comments -->)
- "session": one global scope plus the heap that owns every value created while running it

Basic program flow:
    1. Lexer: turns source text into tokens, see kitler/core/lexical.py
    2. Parser: builds an AST out of the tokens, see kitler/core/parser.py and kitler/core/tree.py
        - Will fail (without running anything) if there is a syntax error
    3. Evaluator: walks the AST against a chain of scopes, see kitler/core/evaluator.py
        - Values are registered with a heap and reclaimed by mark-and-sweep, see kitler/core/memory.py

"""
