import io
import unittest

from kitler.core.memory import Heap
from kitler.core.tree import Block
from kitler.core.values import Scope
from kitler.lang.error import ErrorHandler
from kitler.lang.session import Session


class HeapTestCase(unittest.TestCase):

    def setUp(self):
        self.heap = Heap()
        self.scope = Scope()

    def test_collect(self):
        kept = self.heap.number(1)
        self.scope.define("a", kept)
        garbage = [self.heap.string("x"), self.heap.list([self.heap.number(2)])]

        self.assertEqual(3, self.heap.collect(self.scope))
        self.assertEqual([kept], self.heap.objects)
        self.assertTrue(kept.alive)
        self.assertEqual(1.0, kept.value)
        for value in garbage:
            self.assertFalse(value.alive, value)
        self.assertEqual("", garbage[0].value)

    def test_reachable_values_stay_intact(self):
        inner = self.heap.map({"n": self.heap.number(4), "s": self.heap.string("kt")})
        outer = self.heap.list([inner, self.heap.boolean(True)])
        child = Scope(self.scope)
        self.scope.define("outer", outer)
        child.define("flag", self.heap.null())
        self.heap.string("unreachable")

        reachable = self.heap.reachable_count(child)
        self.assertEqual(6, reachable)
        self.assertFalse(any(value.marked for value in self.heap.objects))

        self.assertEqual(1, self.heap.collect(child))
        self.assertEqual(reachable, self.heap.live_count)
        self.assertEqual(4.0, outer.elements[0].entries["n"].value)
        self.assertEqual("kt", outer.elements[0].entries["s"].value)
        self.assertTrue(outer.elements[1].value)

    def test_only_chain_is_root(self):
        sibling = Scope(self.scope)
        sibling.define("x", self.heap.number(1))
        self.scope.define("y", self.heap.number(2))

        self.assertEqual(1, self.heap.collect(Scope(self.scope)))
        self.assertFalse(sibling.bindings["x"].alive)
        self.assertTrue(self.scope.bindings["y"].alive)

    def test_closures_are_marked(self):
        closure = Scope(self.scope)
        captured = self.heap.number(5)
        closure.define("c", captured)
        self.scope.define("f", self.heap.function("f", [], Block(), closure))

        self.assertEqual(0, self.heap.collect(self.scope))
        self.assertTrue(captured.alive)

        self.scope.bindings.clear()
        self.assertEqual(2, self.heap.collect(self.scope))
        self.assertFalse(captured.alive)

    def test_maybe_collect(self):
        heap = Heap(threshold=3)
        heap.number(1)
        heap.number(2)
        self.assertEqual(0, heap.maybe_collect(self.scope))
        self.assertEqual(0, heap.collections)

        heap.number(3)
        self.assertEqual(3, heap.maybe_collect(self.scope))
        self.assertEqual((1, 0, 3), (heap.collections, heap.allocations, heap.released))

        self.assertEqual(0, Heap().maybe_collect(self.scope))

    def test_teardown(self):
        values = [self.heap.number(1), self.heap.map({"a": self.heap.null()}), self.heap.sprite("player.png"),
                  self.heap.component("audio")]
        self.scope.define("v", values[1])

        self.heap.teardown()
        self.assertEqual(0, self.heap.live_count)
        self.assertEqual(5, self.heap.released)
        self.assertIsNone(values[2].payload)
        self.assertFalse(any(value.alive for value in values))


class SessionMemoryTestCase(unittest.TestCase):

    def session(self, **kwargs):
        self.output = io.StringIO()
        return Session(ErrorHandler(fatal=False, stream=io.StringIO()), output=self.output, **kwargs)

    def test_collect_between_runs(self):
        sess = self.session()
        sess.run("NewFunc makeCounter() (\n"
                 "  NewVar count = 0\n"
                 "  NewFunc inc() (\n"
                 "    count = count + 1\n"
                 "    return count\n"
                 "  )\n"
                 "  return inc\n"
                 ")\n"
                 "NewVar counter = makeCounter()\n"
                 "Console.Write(1 + 2, \"garbage\")")

        reachable = sess.heap.reachable_count(sess.global_scope)
        self.assertGreater(sess.collect(), 0)
        self.assertEqual(reachable, sess.heap.live_count)

        sess.run("Console.Write(counter(), counter())")
        self.assertEqual("3 garbage\n1 2\n", self.output.getvalue())

    def test_automatic_collection(self):
        sess = self.session(gc_threshold=1)
        sess.run("NewVar i = 0\n"
                 "while i < 100 run:\n"
                 "  i = i + 1\n"
                 "end\n"
                 "NewVar xs = [i, \"kept\"]\n"
                 "NewVar j = 1\n"
                 "Console.Write(i, xs[1], j)")

        self.assertEqual("100 kept 1\n", self.output.getvalue())
        self.assertGreater(sess.heap.collections, 0)
        self.assertGreater(sess.heap.released, 100)

    def test_close(self):
        with self.session() as sess:
            sess.run("NewVar x = [1, 2]")
            values = list(sess.heap.objects)

        self.assertTrue(sess.closed)
        self.assertEqual(0, sess.heap.live_count)
        self.assertFalse(any(value.alive for value in values))
        self.assertEqual({}, sess.global_scope.bindings)


if __name__ == '__main__':
    unittest.main()
