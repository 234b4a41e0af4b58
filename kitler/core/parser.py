"""Recursive-descent parser for the kt language. Consumes the tokens produced by kitler.core.lexical.tokenize and
builds a kitler.core.tree.Program.

Statement grammar (newlines are insignificant):

```
<program>    ::= <statement>*
<statement>  ::= "including" <identifier> ["#"]
               | "NewVar" <identifier> ["=" <expr>]
               | ("NewFunc" | "NewAsync") <identifier> "(" [<identifier> ("," <identifier>)*] ")" "(" <block> ")"
               | "if" <expr> "run" ":" <block> ["else" ":" <block>] "end"
               | "while" <expr> "run" ":" <block> "end"
               | ("for" | "foreach") <identifier> "in" <expr> "run" ":" <block> "end"
               | "return" [<expr>]
               | "break"
               | <expr> ["=" <expr>]
<primary>    ::= <number> | <string> | "true" | "false" | "(" <expr> ")"
               | <identifier> ["(" <args> ")" | "." <identifier> | "[" <expr> "]"]   ; one postfix at most
               | "[" <args> "]" | "{" [<key> ":" <expr> ("," <key> ":" <expr>)*] "}"
               | ("-" | "!") <primary>
```

Binary operators bind, from loosest to tightest: or, and, == !=, < <= > >=, + -, * / %. All are left-associative.

Errors never raise: a missing token records a Diagnostic and sets the sticky had_error flag, and parsing carries on
from wherever it is (no resynchronization, so one mistake may produce several diagnostics). A tree parsed with
had_error set must not be evaluated.
"""

from kitler.core.lexical import Token, TokenKind
from kitler.core.tree import (Assign, BinaryOp, Block, Break, Call, For, FuncDecl, Identifier, If, IncludeDirective,
                              IndexAccess, ListLiteral, Literal, MapLiteral, MemberAccess, Program, Return, UnaryOp,
                              VarDecl, While)
from kitler.lang.error import GenericException


PRECEDENCE = {
    TokenKind.OR: 1,
    TokenKind.AND: 2,
    TokenKind.EQUAL: 3,
    TokenKind.NOT_EQUAL: 3,
    TokenKind.LESS: 4,
    TokenKind.LESS_EQUAL: 4,
    TokenKind.GREATER: 4,
    TokenKind.GREATER_EQUAL: 4,
    TokenKind.PLUS: 5,
    TokenKind.MINUS: 5,
    TokenKind.STAR: 6,
    TokenKind.SLASH: 6,
    TokenKind.PERCENT: 6,
}

UNARY = (TokenKind.MINUS, TokenKind.NOT)


class Parser:
    """Single-pass parser. One Parser can be reused for several token sequences; had_error and diagnostics are reset
    by each call to parse.
    """

    def __init__(self, error_handler=None):
        self.error_handler = error_handler
        self.tokens = []
        self.pos = 0
        self.had_error = False
        self.diagnostics = []

        self._statements = {
            TokenKind.INCLUDING: self._including,
            TokenKind.NEWVAR: self._var_decl,
            TokenKind.NEWFUNC: self._func_decl,
            TokenKind.NEWASYNC: self._func_decl,
            TokenKind.IF: self._if,
            TokenKind.WHILE: self._while,
            TokenKind.FOR: self._for,
            TokenKind.FOREACH: self._for,
            TokenKind.RETURN: self._return,
            TokenKind.BREAK: self._break,
        }

    def parse(self, tokens):
        """Parses tokens into a Program. Check self.had_error afterwards."""
        self.tokens = list(tokens)
        self.pos = 0
        self.had_error = False
        self.diagnostics = []

        if not self.tokens or self.tokens[-1].kind is not TokenKind.EOF:
            last = self.tokens[-1] if self.tokens else Token(TokenKind.EOF, "", 1, 1)
            self.tokens.append(Token(TokenKind.EOF, "", last.line, last.column))

        program = _located(Program(), 1, 1)
        program.statements = self._block().statements
        return program

    # token helpers

    def _peek(self):
        return self.tokens[self.pos]

    def _check(self, *kinds):
        return self._peek().kind in kinds

    def _advance(self):
        token = self.tokens[self.pos]
        if token.kind is not TokenKind.EOF:
            self.pos += 1
        return token

    def _match(self, *kinds):
        if self._check(*kinds):
            return self._advance()
        return None

    def _expect(self, kind, message):
        if self._check(kind):
            return self._advance()
        self._error(self._peek(), message)
        return None

    def _error(self, token, msg, exprs=None):
        error = GenericException(msg, exprs, line=token.line, column=token.column)
        self.had_error = True
        self.diagnostics.append(error.diagnostic)
        if self.error_handler is not None:
            self.error_handler.report(error)

    # statements

    def _block(self, *terminators):
        """Reads statements until one of terminators (or end of input). Terminators are not consumed."""
        block = _located(Block(), self._peek().line, self._peek().column)

        while not self._check(TokenKind.EOF, *terminators):
            start = self.pos
            stmt = self._statement()
            if stmt is not None:
                block.statements.append(stmt)
            if self.pos == start:
                self._advance()  # statement could not consume anything: skip offending token

        return block

    def _statement(self):
        method = self._statements.get(self._peek().kind, self._assignment_or_expression)
        return method()

    def _including(self):
        token = self._advance()
        library = self._expect(TokenKind.IDENTIFIER, "Expected library name")
        if library is None:
            return None

        is_priority = self._match(TokenKind.HASH) is not None
        return _at(IncludeDirective(library.lexeme, is_priority), token)

    def _var_decl(self):
        token = self._advance()
        name = self._expect(TokenKind.IDENTIFIER, "Expected variable name")
        if name is None:
            return None

        initializer = self._expression() if self._match(TokenKind.ASSIGN) else None
        return _at(VarDecl(name.lexeme, initializer), token)

    def _params(self):
        params = []
        self._expect(TokenKind.LPAREN, "Expected '(' after function name")

        if not self._check(TokenKind.RPAREN):
            while True:
                param = self._expect(TokenKind.IDENTIFIER, "Expected parameter name")
                if param is not None:
                    params.append(param.lexeme)
                if not self._match(TokenKind.COMMA):
                    break

        self._expect(TokenKind.RPAREN, "Expected ')' after parameters")
        return params

    def _func_decl(self):
        token = self._advance()
        name = self._expect(TokenKind.IDENTIFIER, "Expected function name")
        if name is None:
            return None

        params = self._params()
        self._expect(TokenKind.LPAREN, "Expected '(' before function body")
        body = self._block(TokenKind.RPAREN)
        self._expect(TokenKind.RPAREN, "Expected ')' after function body")

        return _at(FuncDecl(name.lexeme, params, body, token.kind is TokenKind.NEWASYNC), token)

    def _run_header(self, keyword):
        self._expect(TokenKind.RUN, f"Expected 'run:' after {keyword} condition")
        self._expect(TokenKind.COLON, "Expected ':' after 'run'")

    def _if(self):
        token = self._advance()
        condition = self._expression()
        self._run_header("if")

        then_branch = self._block(TokenKind.END, TokenKind.ELSE)
        else_branch = None

        if self._match(TokenKind.ELSE):
            self._expect(TokenKind.COLON, "Expected ':' after 'else'")
            else_branch = self._block(TokenKind.END)
            self._expect(TokenKind.END, "Expected 'end' after else block")
        else:
            self._expect(TokenKind.END, "Expected 'end' after if block")

        return _at(If(condition, then_branch, else_branch), token)

    def _while(self):
        token = self._advance()
        condition = self._expression()
        self._run_header("while")

        body = self._block(TokenKind.END)
        self._expect(TokenKind.END, "Expected 'end' after while block")
        return _at(While(condition, body), token)

    def _for(self):
        token = self._advance()
        iterator = self._expect(TokenKind.IDENTIFIER, "Expected iterator variable")
        if iterator is None:
            return None

        self._expect(TokenKind.IN, "Expected 'in' after iterator")
        iterable = self._expression()
        self._run_header("for")

        body = self._block(TokenKind.END)
        self._expect(TokenKind.END, "Expected 'end' after for block")
        return _at(For(iterator.lexeme, iterable, body), token)

    def _return(self):
        token = self._advance()
        value = None
        if not self._check(TokenKind.END, TokenKind.ELSE, TokenKind.RPAREN, TokenKind.EOF):
            value = self._expression()
        return _at(Return(value), token)

    def _break(self):
        token = self._advance()
        if self.error_handler is not None:
            self.error_handler.warn("'break' does not leave the enclosing loop", line=token.line, column=token.column)
        return _at(Break(), token)

    def _assignment_or_expression(self):
        token = self._peek()
        expr = self._expression()

        if self._match(TokenKind.ASSIGN):
            return _at(Assign(expr, self._expression()), token)
        return expr

    # expressions

    def _expression(self):
        return self._binary(0)

    def _binary(self, min_precedence):
        """Precedence climbing: folds operators binding at least as tightly as min_precedence to the left."""
        left = self._primary()

        while True:
            token = self._peek()
            precedence = PRECEDENCE.get(token.kind)
            if precedence is None or precedence < min_precedence:
                return left

            self._advance()
            right = self._binary(precedence + 1)
            left = _at(BinaryOp(token.lexeme, left, right), token)

    def _arguments(self, closing):
        args = []
        if not self._check(closing):
            args.append(self._expression())
            while self._match(TokenKind.COMMA):
                args.append(self._expression())
        return args

    def _primary(self):
        token = self._peek()

        if self._match(TokenKind.NUMBER, TokenKind.STRING):
            return _at(Literal(token.literal), token)
        if self._match(TokenKind.TRUE, TokenKind.FALSE):
            return _at(Literal(token.kind is TokenKind.TRUE), token)
        if self._match(TokenKind.IDENTIFIER):
            return self._postfix(_at(Identifier(token.lexeme), token), token)

        if self._match(TokenKind.LPAREN):
            expr = self._expression()
            self._expect(TokenKind.RPAREN, "Expected ')' after expression")
            return expr

        if self._match(TokenKind.LBRACKET):
            elements = self._arguments(TokenKind.RBRACKET)
            self._expect(TokenKind.RBRACKET, "Expected ']' after list elements")
            return _at(ListLiteral(elements), token)

        if self._match(TokenKind.LBRACE):
            return _at(MapLiteral(self._entries()), token)

        if self._match(*UNARY):
            return _at(UnaryOp(token.lexeme, self._primary()), token)

        if token.kind is TokenKind.ERROR:
            self._error(token, token.lexeme)
        elif token.kind is TokenKind.EOF:
            self._error(token, "Unexpected end of input")
        else:
            self._error(token, "Unexpected token '{}'", token.lexeme)
        return None

    def _postfix(self, node, token):
        """A single call, member access or index postfix. Postfixes do not chain: f(x)(y) is two statements."""
        if self._match(TokenKind.LPAREN):
            args = self._arguments(TokenKind.RPAREN)
            self._expect(TokenKind.RPAREN, "Expected ')' after arguments")
            return _at(Call(node, args), token)

        if self._match(TokenKind.DOT):
            member = self._expect(TokenKind.IDENTIFIER, "Expected member name")
            if member is None:
                return node
            return _at(MemberAccess(node, member.lexeme), token)

        if self._match(TokenKind.LBRACKET):
            index = self._expression()
            self._expect(TokenKind.RBRACKET, "Expected ']' after index")
            return _at(IndexAccess(node, index), token)

        return node

    def _entries(self):
        entries = {}
        if not self._check(TokenKind.RBRACE):
            while True:
                key = self._match(TokenKind.IDENTIFIER, TokenKind.STRING)
                if key is None:
                    self._error(self._peek(), "Expected map key")
                    break

                self._expect(TokenKind.COLON, "Expected ':' after map key")
                entries[key.literal if key.kind is TokenKind.STRING else key.lexeme] = self._expression()
                if not self._match(TokenKind.COMMA):
                    break

        self._expect(TokenKind.RBRACE, "Expected '}' after map entries")
        return entries


def _located(node, line, column):
    node.line = line
    node.column = column
    return node


def _at(node, token):
    return _located(node, token.line, token.column)


def parse(tokens, error_handler=None):
    """Convenience wrapper: returns (Program, had_error)."""
    parser = Parser(error_handler)
    program = parser.parse(tokens)
    return program, parser.had_error
