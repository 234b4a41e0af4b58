"""Lexical analysis for the kt language: turns source text into a flat sequence of Tokens.

Lexical grammar:

```
<comment>    ::= "<--" <char>* "-->"                  ; may span lines, not nestable
<string>     ::= '"' <char except '"'>* '"'           ; no escape sequences, may span lines
<number>     ::= <digit>+ ["." <digit>+]              ; no exponent, no sign (unary minus is an operator)
<identifier> ::= (<letter> | "_") (<letter> | <digit> | "_" | ".")*
                                                      ; checked against KEYWORDS once fully scanned
```

Newlines are produced as tokens by Lexer.next_token, but tokenize drops them: statements are not newline-sensitive.
"""

import string
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Union


LETTERS = set(string.ascii_letters)
DIGITS = set(string.digits)


class TokenKind(Enum):
    """Token kinds. Each value is (name, category)."""

    NUMBER = ("NUMBER", "literal")
    STRING = ("STRING", "literal")
    IDENTIFIER = ("IDENTIFIER", "literal")
    TRUE = ("TRUE", "literal")
    FALSE = ("FALSE", "literal")

    INCLUDING = ("INCLUDING", "keyword")
    PROJECTSPACE = ("PROJECTSPACE", "keyword")
    NEWVAR = ("NEWVAR", "keyword")
    NEWFUNC = ("NEWFUNC", "keyword")
    NEWCLASS = ("NEWCLASS", "keyword")
    NEWEVENT = ("NEWEVENT", "keyword")
    NEWASYNC = ("NEWASYNC", "keyword")
    IF = ("IF", "keyword")
    ELSE = ("ELSE", "keyword")
    WHILE = ("WHILE", "keyword")
    FOR = ("FOR", "keyword")
    FOREACH = ("FOREACH", "keyword")
    IN = ("IN", "keyword")
    SWITCH = ("SWITCH", "keyword")
    CASE = ("CASE", "keyword")
    DEFAULT = ("DEFAULT", "keyword")
    BREAK = ("BREAK", "keyword")
    RETURN = ("RETURN", "keyword")
    RUN = ("RUN", "keyword")
    END = ("END", "keyword")
    WHEN = ("WHEN", "keyword")
    THIS = ("THIS", "keyword")
    NEW = ("NEW", "keyword")
    AWAIT = ("AWAIT", "keyword")

    PLUS = ("PLUS", "operator")
    MINUS = ("MINUS", "operator")
    STAR = ("STAR", "operator")
    SLASH = ("SLASH", "operator")
    PERCENT = ("PERCENT", "operator")
    ASSIGN = ("ASSIGN", "operator")
    EQUAL = ("EQUAL", "operator")
    NOT_EQUAL = ("NOT_EQUAL", "operator")
    LESS = ("LESS", "operator")
    LESS_EQUAL = ("LESS_EQUAL", "operator")
    GREATER = ("GREATER", "operator")
    GREATER_EQUAL = ("GREATER_EQUAL", "operator")
    AND = ("AND", "operator")
    OR = ("OR", "operator")
    NOT = ("NOT", "operator")

    LPAREN = ("LPAREN", "delimiter")
    RPAREN = ("RPAREN", "delimiter")
    LBRACKET = ("LBRACKET", "delimiter")
    RBRACKET = ("RBRACKET", "delimiter")
    LBRACE = ("LBRACE", "delimiter")
    RBRACE = ("RBRACE", "delimiter")
    COMMA = ("COMMA", "delimiter")
    DOT = ("DOT", "delimiter")
    COLON = ("COLON", "delimiter")
    HASH = ("HASH", "delimiter")

    NEWLINE = ("NEWLINE", "special")
    EOF = ("EOF", "special")
    ERROR = ("ERROR", "special")

    @property
    def category(self):
        return self.value[1]


KEYWORDS = {
    "including": TokenKind.INCLUDING,
    "projectSpace": TokenKind.PROJECTSPACE,
    "NewVar": TokenKind.NEWVAR,
    "NewFunc": TokenKind.NEWFUNC,
    "NewClass": TokenKind.NEWCLASS,
    "NewEvent": TokenKind.NEWEVENT,
    "NewAsync": TokenKind.NEWASYNC,
    "if": TokenKind.IF,
    "else": TokenKind.ELSE,
    "while": TokenKind.WHILE,
    "for": TokenKind.FOR,
    "foreach": TokenKind.FOREACH,
    "in": TokenKind.IN,
    "switch": TokenKind.SWITCH,
    "case": TokenKind.CASE,
    "default": TokenKind.DEFAULT,
    "break": TokenKind.BREAK,
    "return": TokenKind.RETURN,
    "run": TokenKind.RUN,
    "end": TokenKind.END,
    "when": TokenKind.WHEN,
    "this": TokenKind.THIS,
    "New": TokenKind.NEW,
    "await": TokenKind.AWAIT,
    "true": TokenKind.TRUE,
    "false": TokenKind.FALSE,
    "and": TokenKind.AND,
    "or": TokenKind.OR,
}

SINGLE_CHARS = {
    "(": TokenKind.LPAREN,
    ")": TokenKind.RPAREN,
    "[": TokenKind.LBRACKET,
    "]": TokenKind.RBRACKET,
    "{": TokenKind.LBRACE,
    "}": TokenKind.RBRACE,
    ",": TokenKind.COMMA,
    ".": TokenKind.DOT,
    ":": TokenKind.COLON,
    "#": TokenKind.HASH,
    "+": TokenKind.PLUS,
    "-": TokenKind.MINUS,
    "*": TokenKind.STAR,
    "/": TokenKind.SLASH,
    "%": TokenKind.PERCENT,
}

# first char: (kind without "=", kind with "=")
DOUBLE_CHARS = {
    "=": (TokenKind.ASSIGN, TokenKind.EQUAL),
    "!": (TokenKind.NOT, TokenKind.NOT_EQUAL),
    "<": (TokenKind.LESS, TokenKind.LESS_EQUAL),
    ">": (TokenKind.GREATER, TokenKind.GREATER_EQUAL),
}

COMMENT_OPEN = "<--"
COMMENT_CLOSE = "-->"


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    lexeme: str
    line: int
    column: int
    literal: Optional[Union[float, str]] = None

    def __repr__(self):
        return f"Token({self.kind.name}, {self.lexeme!r}, {self.line}:{self.column})"


class Lexer:
    """Restartable cursor over source. Call next_token until an EOF token is produced."""

    def __init__(self, source):
        self.source = source
        self.pos = 0
        self.line = 1
        self.column = 1

    def _at_end(self):
        return self.pos >= len(self.source)

    def _peek(self, offset=0):
        idx = self.pos + offset
        return self.source[idx] if idx < len(self.source) else ""

    def _advance(self):
        char = self.source[self.pos]
        self.pos += 1
        if char == "\n":
            self.line += 1
            self.column = 1
        else:
            self.column += 1
        return char

    def _skip_whitespace(self):
        while self._peek() in (" ", "\t", "\r"):
            self._advance()

    def _skip_comment(self):
        """Skips a comment if one starts at the cursor. Returns whether or not one was skipped."""
        if not self.source.startswith(COMMENT_OPEN, self.pos):
            return False

        for __ in COMMENT_OPEN:
            self._advance()
        while not self._at_end():
            if self.source.startswith(COMMENT_CLOSE, self.pos):
                for __ in COMMENT_CLOSE:
                    self._advance()
                break
            self._advance()
        return True

    def _make(self, kind, start, line, column, literal=None):
        return Token(kind, self.source[start:self.pos], line, column, literal)

    def _string(self, line, column):
        start = self.pos
        self._advance()  # opening quote

        while not self._at_end() and self._peek() != '"':
            self._advance()

        if self._at_end():
            return Token(TokenKind.ERROR, "Unterminated string", line, column)

        self._advance()  # closing quote
        return self._make(TokenKind.STRING, start, line, column, self.source[start + 1:self.pos - 1])

    def _number(self, line, column):
        start = self.pos
        while self._peek() in DIGITS:
            self._advance()

        if self._peek() == "." and self._peek(1) in DIGITS:
            self._advance()
            while self._peek() in DIGITS:
                self._advance()

        return self._make(TokenKind.NUMBER, start, line, column, float(self.source[start:self.pos]))

    def _identifier(self, line, column):
        start = self.pos
        while not self._at_end() and (self._peek() in LETTERS or self._peek() in DIGITS or self._peek() in "_."):
            self._advance()

        text = self.source[start:self.pos]
        return self._make(KEYWORDS.get(text, TokenKind.IDENTIFIER), start, line, column)

    def next_token(self):
        """Returns the next Token. Once the source is exhausted, every call returns an EOF token."""
        while True:
            self._skip_whitespace()
            if not self._skip_comment():
                break

        line, column = self.line, self.column
        if self._at_end():
            return Token(TokenKind.EOF, "", line, column)

        start = self.pos
        char = self._peek()

        if char == "\n":
            self._advance()
            return self._make(TokenKind.NEWLINE, start, line, column)
        if char == '"':
            return self._string(line, column)
        if char in DIGITS:
            return self._number(line, column)
        if char in LETTERS or char == "_":
            return self._identifier(line, column)

        self._advance()
        if char in SINGLE_CHARS:
            return self._make(SINGLE_CHARS[char], start, line, column)
        if char in DOUBLE_CHARS:
            single, double = DOUBLE_CHARS[char]
            if self._peek() == "=":
                self._advance()
                return self._make(double, start, line, column)
            return self._make(single, start, line, column)

        return Token(TokenKind.ERROR, f"Unexpected character: {char}", line, column)


def tokenize(source) -> List[Token]:
    """Tokenizes all of source, dropping newlines. Stops at (and includes) the first ERROR token; otherwise the last
    token is EOF.
    """
    lexer = Lexer(source)
    tokens = []

    while True:
        token = lexer.next_token()
        if token.kind is TokenKind.NEWLINE:
            continue

        tokens.append(token)
        if token.kind in (TokenKind.EOF, TokenKind.ERROR):
            return tokens
