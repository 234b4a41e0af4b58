"""Lexer, parser, AST, values, heap and evaluator of the kt language."""
