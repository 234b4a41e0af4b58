"""Handles interactive/command-line mode for the kt interpreter. Uses cmd as backend."""

import cmd


class Shell(cmd.Cmd):
    """kt REPL. Every line runs in the same session, so declarations persist from one line to the next."""
    intro = "Kitler (KT) REPL v1.0\nType 'exit' to quit"
    prompt = "kt> "

    def __init__(self, sess, *args, **kwargs):
        super().__init__(*args, **kwargs)

        self.sess = sess

    def default(self, line):
        """Runs one line of kt, then collects whatever it left unreachable."""
        with self.sess.error_handler:  # needed because cmd.Cmd automatically exits on Exception
            self.sess.error_handler.diagnostics.clear()  # errors are kept for the current line only
            self.sess.run(line)
            self.sess.collect()

    def emptyline(self):
        """Do not repeat previous command on empty line."""
        return ""

    def do_EOF(self, arg):
        """Exits interpreter."""
        print(file=self.stdout)
        return self.do_exit(arg)

    def do_exit(self, arg):
        """Exits interpreter."""
        return True

    def do_quit(self, arg):
        """Exits interpreter."""
        return True
