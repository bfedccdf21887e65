"""Test the iterators of the Debug model source"""

import unittest

from lmchain.providers.message_iterator import (
    MessageIterator,
    yield_message,
    yield_constant_message,
)


class TestMessageIterator(unittest.TestCase):

    def test_default_prefix(self):
        iterator = yield_message()
        self.assertIsInstance(iterator, MessageIterator)
        self.assertEqual(next(iterator), "Message 1")
        self.assertEqual(next(iterator), "Message 2")

    def test_custom_prefix(self):
        iterator = yield_message("debug")
        self.assertEqual(
            [next(iterator) for _ in range(3)],
            ["debug 1", "debug 2", "debug 3"],
        )

    def test_independent(self):
        iter1 = yield_message("Task")
        iter2 = yield_message("Event")
        next(iter1)
        self.assertEqual(next(iter2), "Event 1")
        self.assertEqual(next(iter1), "Task 2")

    def test_constant(self):
        iterator = yield_constant_message("Ivan")
        self.assertEqual([next(iterator) for _ in range(3)], ["Ivan"] * 3)
        self.assertEqual(iterator.counter, 3)

    def test_iterable(self):
        for count, message in enumerate(yield_message("m"), start=1):
            self.assertEqual(message, f"m {count}")
            if count == 3:
                break


if __name__ == "__main__":
    unittest.main()
