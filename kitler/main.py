"""Uses the kt language implementation to interpret .kt files/run in command-line mode. Also uses error handling context
manager. Called from the kt executable script.
"""

import argparse
import sys

from kitler.core.lexical import Lexer, TokenKind
from kitler.lang.error import ErrorHandler, GenericException
from kitler.lang.session import Session
from kitler.lang.shell import Shell


def dump(sess, path, what):
    """Prints the tokens or the AST of path instead of running it. Returns whether or not path was well-formed."""
    try:
        with open(path, "r") as file:
            source = file.read()
    except OSError:
        raise GenericException("'{}' could not be opened", path)

    if what == "tokens":
        lexer = Lexer(source)
        while True:
            token = lexer.next_token()
            if token.kind is not TokenKind.NEWLINE:
                print(token)
            if token.kind in (TokenKind.EOF, TokenKind.ERROR):
                return token.kind is TokenKind.EOF

    sess.path = path
    sess.error_handler.register_file(path, source)
    program = sess.parse(source)
    if program is None:
        return False

    print(program.display())
    return True


def main():
    """Runs kt interpreter. Called from kt executable script."""
    with ErrorHandler() as error_handler:
        parser = argparse.ArgumentParser(prog="kt", description="Kitler (KT) interpreter")
        parser.add_argument("file", help="file to interpret and run (if empty, goes to command-line mode)", nargs="?")
        parser.add_argument("--strict", action="store_true", help="abort on the first evaluation error")
        parser.add_argument("--gc-threshold", type=int, default=None, metavar="N",
                            help="collect automatically every N allocations")
        parser.add_argument("--dump", choices=["tokens", "ast"], help="print tokens/AST of file instead of running it")
        args = parser.parse_args()

        if args.dump and args.file is None:
            parser.error("--dump requires a file")

        with Session(error_handler, strict=args.strict, gc_threshold=args.gc_threshold) as sess:
            if args.dump:
                ok = dump(sess, args.file, args.dump)
            elif args.file is not None:
                ok = sess.run_file(args.file)
            else:
                error_handler.fatal = False
                Shell(sess).cmdloop()
                ok = True

        if not ok:
            sys.exit(1)


if __name__ == "__main__":
    main()
