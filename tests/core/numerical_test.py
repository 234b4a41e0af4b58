import math
import unittest

from kitler.core import numerical


class NumericalTestCase(unittest.TestCase):

    def test_divide(self):
        cases = [((7.0, 2.0), 3.5), ((1.0, 0.0), math.inf), ((-1.0, 0.0), -math.inf), ((1.0, -0.0), -math.inf)]
        for (left, right), result in cases:
            self.assertEqual(result, numerical.divide(left, right), (left, right))

        self.assertTrue(math.isnan(numerical.divide(0.0, 0.0)))

    def test_remainder(self):
        cases = {(7.0, 3.0): 1.0, (-7.0, 3.0): -1.0, (7.5, 2.0): 1.5}
        for (left, right), result in cases.items():
            self.assertEqual(result, numerical.remainder(left, right), (left, right))

        should_fail = [(1.0, 0.0), (math.inf, 2.0), (math.nan, 2.0)]
        for left, right in should_fail:
            self.assertTrue(math.isnan(numerical.remainder(left, right)), (left, right))

    def test_display(self):
        cases = {30.0: "30", 0.25: "0.25", 1 / 3: "0.333333", 1e20: "1e+20", math.inf: "inf", -0.0: "-0"}
        for number, text in cases.items():
            self.assertEqual(text, numerical.display(number), number)

    def test_index(self):
        cases = {2.9: 2, 0.0: 0, -1.5: -1, math.nan: None, math.inf: None}
        for number, result in cases.items():
            self.assertEqual(result, numerical.index(number), number)


if __name__ == '__main__':
    unittest.main()
