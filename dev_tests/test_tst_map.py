import copy
import os
import random
import sys
import unittest

# Ensure repo root is on sys.path so "tst" is importable when run directly
ROOT_DIR = os.path.abspath(os.path.join(os.path.dirname(os.path.abspath(__file__)), os.pardir))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

from tst.tst_map import TSTMap, swap  # noqa: E402


# ---------- Helpers ----------
END = sys.maxunicode + 1


def traversal_order(keys):
    """Expected emission order: sorted by character, except that the end of a
    key sorts after every character (a longer key precedes its own prefix)."""
    return sorted(set(keys), key=lambda k: [ord(c) for c in k] + [END])


def gen_words_fixed():
    return [
        "app", "apple", "apply",
        "bat", "batch", "bath",
        "bar", "bark",
        "cat", "cater",
        "do", "dog", "dogma", "dove",
    ]


def gen_random_words(rng, n, alphabet="abcde", min_len=1, max_len=6):
    return ["".join(rng.choice(alphabet) for _ in range(rng.randint(min_len, max_len)))
            for _ in range(n)]


# ---------------------------------- Tests ----------------------------------
class TestInsertFind(unittest.TestCase):
    def test_roundtrip(self):
        m = TSTMap()
        for i, w in enumerate(gen_words_fixed()):
            self.assertEqual(m.insert(w, i), i)
        for i, w in enumerate(gen_words_fixed()):
            self.assertEqual(m.find(w), i)
            self.assertIn(w, m)
        self.assertEqual(m.size(), len(gen_words_fixed()))
        self.assertFalse(m.empty())

    def test_missing_keys(self):
        m = TSTMap()
        for w in gen_words_fixed():
            m.insert(w, w.upper())
        for w in ["ap", "applyy", "ba", "d", "zebra", "caters"]:
            self.assertIsNone(m.find(w))
            self.assertNotIn(w, m)
        self.assertEqual(m.find("zebra", default=-1), -1)

    def test_prefix_only_path_is_not_a_key(self):
        m = TSTMap()
        m.insert("dogma", 1)
        self.assertIsNone(m.find("dog"))
        self.assertNotIn("dog", m)
        self.assertEqual(m.size(), 1)

    def test_reinsert_overwrites_without_growing(self):
        m = TSTMap()
        m.insert("key", 1)
        m.insert("key", 2)
        self.assertEqual(m.size(), 1)
        self.assertEqual(m.find("key"), 2)

    def test_none_is_a_storable_value(self):
        m = TSTMap()
        m.insert("a", None)
        self.assertIn("a", m)
        self.assertEqual(m.size(), 1)
        self.assertIsNone(m.find("a", default=5))
        self.assertTrue(m.remove("a"))

    def test_empty_key_is_ignored(self):
        m = TSTMap()
        self.assertIsNone(m.insert("", 1))
        self.assertEqual(m.size(), 0)
        self.assertIsNone(m.find(""))
        self.assertNotIn("", m)
        self.assertEqual(m.count_nodes(), 0)
        self.assertFalse(m.remove(""))
        m.insert("a", 1)
        m.insert("", 2)
        self.assertEqual(m.size(), 1)

    def test_single_character_keys(self):
        m = TSTMap()
        for c in "mbxa":
            m.insert(c, c)
        self.assertEqual([k for k, _ in m.to_sequence()], ["a", "b", "m", "x"])

    def test_setitem_getitem(self):
        m = TSTMap()
        m["cat"] = 1
        self.assertEqual(m["cat"], 1)
        with self.assertRaises(KeyError):
            m["dog"]
        self.assertEqual(m.size(), 1)

    def test_insert_pair_update_and_constructor(self):
        m = TSTMap([("b", 2), ("a", 1)])
        m.insert_pair(("c", 3))
        m.update({"d": 4})
        m.update([("a", 10)])
        self.assertEqual(m.to_sequence(), [("a", 10), ("b", 2), ("c", 3), ("d", 4)])

    def test_get_alias(self):
        m = TSTMap({"x": 1})
        self.assertEqual(m.get("x"), 1)
        self.assertEqual(m.get("y", 0), 0)

    def test_non_str_key_raises(self):
        m = TSTMap()
        with self.assertRaises(TypeError):
            m.insert(1, "x")
        with self.assertRaises(TypeError):
            m.find(b"abc")
        self.assertFalse(1 in m)


class TestIndex(unittest.TestCase):
    def test_index_creates_default_from_factory(self):
        m = TSTMap(default_factory=list)
        m.index("x").append(1)
        m.index("x").append(2)
        self.assertEqual(m.find("x"), [1, 2])
        self.assertEqual(m.size(), 1)

    def test_index_without_factory_stores_none(self):
        m = TSTMap()
        self.assertIsNone(m.index("x"))
        self.assertIn("x", m)
        self.assertEqual(m.size(), 1)

    def test_index_returns_existing_value(self):
        m = TSTMap(default_factory=int)
        m.insert("x", 7)
        self.assertEqual(m.index("x"), 7)
        self.assertEqual(m.size(), 1)

    def test_index_empty_key_is_not_stored(self):
        m = TSTMap(default_factory=int)
        self.assertEqual(m.index(""), 0)
        self.assertEqual(m.size(), 0)

    def test_getitem_with_factory_behaves_like_defaultdict(self):
        m = TSTMap(default_factory=int)
        m["count"] += 3
        m["count"] += 1
        self.assertEqual(m["count"], 4)
        self.assertEqual(m.size(), 1)


class TestRemoveClear(unittest.TestCase):
    def test_remove(self):
        m = TSTMap()
        for w in gen_words_fixed():
            m.insert(w, 1)
        self.assertTrue(m.remove("apple"))
        self.assertIsNone(m.find("apple"))
        self.assertFalse(m.remove("apple"))
        self.assertFalse(m.remove("zzz"))
        self.assertFalse(m.remove("ap"))
        self.assertEqual(m.find("app"), 1)
        self.assertEqual(m.find("apply"), 1)
        self.assertEqual(m.size(), len(gen_words_fixed()) - 1)

    def test_remove_keeps_nodes(self):
        m = TSTMap()
        for w in gen_words_fixed():
            m.insert(w, 1)
        nodes = m.count_nodes()
        for w in gen_words_fixed():
            self.assertTrue(m.erase(w))
        self.assertEqual(m.size(), 0)
        self.assertTrue(m.empty())
        self.assertEqual(m.count_nodes(), nodes)
        self.assertEqual(m.to_sequence(), [])
        for w in gen_words_fixed():
            m.insert(w, 2)
        self.assertEqual(m.count_nodes(), nodes)
        self.assertEqual(m.size(), len(gen_words_fixed()))

    def test_delitem(self):
        m = TSTMap({"a": 1})
        del m["a"]
        with self.assertRaises(KeyError):
            del m["a"]

    def test_clear(self):
        m = TSTMap()
        for w in gen_words_fixed():
            m.insert(w, 1)
        m.remove("dog")
        m.clear()
        self.assertEqual(m.size(), 0)
        self.assertEqual(len(m), 0)
        self.assertEqual(m.count_nodes(), 0)
        self.assertEqual(m.to_sequence(), [])
        self.assertIsNone(m.find("cat"))
        m.insert("cat", 5)
        self.assertEqual(m.to_sequence(), [("cat", 5)])

    def test_random_ops_against_dict(self):
        rng = random.Random(1337)
        m = TSTMap()
        oracle = {}
        for step in range(3000):
            key = "".join(rng.choice("abc") for _ in range(rng.randint(0, 4)))
            op = rng.random()
            if op < 0.5:
                m.insert(key, step)
                if key:
                    oracle[key] = step
            elif op < 0.8:
                self.assertEqual(m.remove(key), oracle.pop(key, None) is not None)
            else:
                self.assertEqual(m.find(key, default=-1), oracle.get(key, -1))
            self.assertEqual(m.size(), len(oracle))
        self.assertEqual(dict(m.to_sequence()), oracle)


class TestTraversal(unittest.TestCase):
    def test_longer_key_precedes_its_prefix(self):
        m = TSTMap()
        m.insert("dog", 1)
        m.insert("dogma", 2)
        self.assertEqual(m.to_sequence(), [("dogma", 2), ("dog", 1)])

    def test_divergent_keys_ascend(self):
        m = TSTMap()
        for w in ["b", "a", "c"]:
            m.insert(w, w)
        self.assertEqual(list(m), ["a", "b", "c"])
        m2 = TSTMap()
        for w in ["abc", "abd", "abx"]:
            m2.insert(w, w)
        self.assertEqual(list(m2.keys()), ["abc", "abd", "abx"])

    def test_fixed_words_order(self):
        m = TSTMap()
        for i, w in enumerate(gen_words_fixed()):
            m.insert(w, i)
        self.assertEqual(list(m.keys()), traversal_order(gen_words_fixed()))

    def test_random_completeness_and_order(self):
        rng = random.Random(7)
        for _ in range(20):
            words = gen_random_words(rng, 200)
            m = TSTMap()
            expected = {}
            for i, w in enumerate(words):
                m.insert(w, i)
                expected[w] = i
            seq = m.to_sequence()
            self.assertEqual([k for k, _ in seq], traversal_order(words))
            self.assertEqual(dict(seq), expected)
            self.assertEqual(len(seq), m.size())

    def test_for_each_items_values(self):
        m = TSTMap({"b": 2, "a": 1, "ab": 3})
        seen = []
        m.for_each(lambda k, v: seen.append((k, v)))
        self.assertEqual(seen, [("ab", 3), ("a", 1), ("b", 2)])
        self.assertEqual(list(m.items()), seen)
        self.assertEqual(list(m.values()), [3, 1, 2])

    def test_deep_keys_do_not_recurse(self):
        deep = "a" * 5000
        m = TSTMap()
        m.insert(deep, 1)
        m.insert(deep[:-1] + "b", 2)
        self.assertEqual(m.find(deep), 1)
        self.assertEqual([v for _, v in m.to_sequence()], [1, 2])
        self.assertEqual(m.near_search(deep, 0), [(deep, 1)])
        self.assertEqual(len(m.near_search(deep, 1)), 2)
        self.assertEqual(len(m.partial_match(deep[:-1] + ".")), 2)
        m.clear()
        self.assertEqual(m.size(), 0)

    def test_degenerate_ascending_chain(self):
        # Every key branches through hikid: a long unbalanced binary dimension
        keys = [chr(0x100 + i) for i in range(3000)]
        m = TSTMap()
        for i, k in enumerate(keys):
            m.insert(k, i)
        self.assertEqual(list(m), keys)
        self.assertEqual(m.count_nodes(), 3000)
        m.clear()
        self.assertEqual(m.count_nodes(), 0)


class TestCollation(unittest.TestCase):
    def test_case_insensitive(self):
        m = TSTMap(collate=str.casefold)
        m.insert("Apple", 1)
        self.assertEqual(m.find("apple"), 1)
        self.assertEqual(m.find("APPLE"), 1)
        m.insert("APPLE", 2)
        self.assertEqual(m.size(), 1)
        self.assertEqual(m.to_sequence(), [("Apple", 2)])

    def test_case_insensitive_order(self):
        m = TSTMap(collate=str.casefold)
        for w in ["b", "A", "C"]:
            m.insert(w, w)
        self.assertEqual(list(m), ["A", "b", "C"])

    def test_custom_alphabet(self):
        order = {c: i for i, c in enumerate("zyxwvutsrqponmlkjihgfedcba")}
        m = TSTMap(collate=order.__getitem__)
        for w in ["abc", "zeta", "m"]:
            m.insert(w, 1)
        self.assertEqual(list(m), ["zeta", "m", "abc"])


class TestCopyAssignSwap(unittest.TestCase):
    def test_copy_independence(self):
        a = TSTMap({"cat": 1, "car": 2})
        b = a.copy()
        self.assertEqual(a, b)
        a.insert("cap", 3)
        a.remove("cat")
        self.assertEqual(b.to_sequence(), [("car", 2), ("cat", 1)])
        b.insert("dog", 4)
        self.assertNotIn("dog", a)
        c = copy.copy(b)
        self.assertEqual(c.to_sequence(), b.to_sequence())

    def test_assign_replaces_contents(self):
        a = TSTMap({"x": 1})
        b = TSTMap({"y": 2, "z": 3})
        self.assertIs(a.assign(b), a)
        self.assertEqual(a.to_sequence(), [("y", 2), ("z", 3)])
        self.assertEqual(a.size(), 2)

    def test_self_assign_is_noop(self):
        a = TSTMap({"x": 1, "xy": 2})
        before = a.to_sequence()
        a.assign(a)
        self.assertEqual(a.to_sequence(), before)
        self.assertEqual(a.size(), 2)

    def test_assign_with_conversion(self):
        ints = TSTMap({"one": 1, "two": 2})
        strs = TSTMap()
        strs.assign(ints, convert=str)
        self.assertEqual(strs.find("one"), "1")
        self.assertEqual(strs.find("two"), "2")

    def test_copy_keeps_collation(self):
        a = TSTMap({"Key": 1}, collate=str.casefold)
        b = a.copy()
        self.assertEqual(b.find("KEY"), 1)

    def test_swap(self):
        a = TSTMap({"a": 1, "b": 2})
        b = TSTMap({"zz": 9})
        seq_a, seq_b = a.to_sequence(), b.to_sequence()
        a.swap(b)
        self.assertEqual(a.to_sequence(), seq_b)
        self.assertEqual(b.to_sequence(), seq_a)
        self.assertEqual((a.size(), b.size()), (1, 2))
        swap(a, b)
        self.assertEqual(a.to_sequence(), seq_a)
        self.assertEqual(b.size(), 1)

    def test_swap_moves_collation_with_tree(self):
        a = TSTMap({"Key": 1, "b": 2}, collate=str.casefold)
        b = TSTMap({"Key": 3})
        a.swap(b)
        # b now holds the case-insensitive tree
        self.assertEqual(b.find("KEY"), 1)
        self.assertEqual(b.find("key"), 1)
        self.assertIsNone(a.find("KEY"))
        self.assertEqual(a.find("Key"), 3)

        b.insert("kEY", 10)
        self.assertEqual(b.size(), 2)
        self.assertEqual(b.find("Key"), 10)
        b.insert("A", 4)
        b.insert("C", 5)
        self.assertEqual(list(b), ["A", "b", "C", "Key"])

        a.insert("KEY", 6)
        self.assertEqual(a.size(), 2)
        a.insert("a", 7)
        self.assertEqual(list(a), ["KEY", "Key", "a"])


class TestStructure(unittest.TestCase):
    def test_count_nodes(self):
        m = TSTMap()
        m.insert("cat", 1)
        m.insert("car", 2)
        self.assertEqual(m.count_nodes(), 4)
        self.assertAlmostEqual(m.count_nodes(get_avg_branch_factor=True), 1.0)
        self.assertEqual(TSTMap().count_nodes(get_avg_branch_factor=True), 0.0)

    def test_shared_prefix_nodes(self):
        m = TSTMap()
        m.insert("abc", 1)
        m.insert("abd", 2)
        m.insert("ab", 3)
        # a, b, c, d: "ab" terminates on an existing node
        self.assertEqual(m.count_nodes(), 4)

    def test_len_bool_eq_repr(self):
        m = TSTMap()
        self.assertFalse(m)
        m.insert("k", 1)
        self.assertTrue(m)
        self.assertEqual(len(m), 1)
        self.assertEqual(m, TSTMap({"k": 1}))
        self.assertNotEqual(m, TSTMap({"k": 2}))
        self.assertEqual(repr(m), "TSTMap([('k', 1)])")


if __name__ == "__main__":
    unittest.main(verbosity=2)
