import unittest

from voice_questions.detection.similarity import is_similar, levenshtein_distance, similarity

class TestLevenshtein(unittest.TestCase):
    def test_known_distances(self):
        self.assertEqual(levenshtein_distance("kitten", "sitting"), 3)
        self.assertEqual(levenshtein_distance("", "abc"), 3)
        self.assertEqual(levenshtein_distance("abc", ""), 3)
        self.assertEqual(levenshtein_distance("flaw", "lawn"), 2)

class TestSimilarity(unittest.TestCase):
    def test_identical_strings(self):
        for text in ["", "a", "How do I use a mutex?", "  spaces  "]:
            self.assertEqual(similarity(text, text), 1.0)

    def test_empty_strings_are_identical(self):
        self.assertEqual(similarity("", ""), 1.0)

    def test_one_empty_string(self):
        self.assertEqual(similarity("", "docker"), 0.0)

    def test_symmetric(self):
        pairs = [
            ("What is docker?", "what is kubernetes?"),
            ("abc", "abcdef"),
            ("Explain CORS", "explain cors to me"),
        ]
        for a, b in pairs:
            self.assertEqual(similarity(a, b), similarity(b, a))

    def test_case_insensitive(self):
        self.assertEqual(similarity("What Is A Socket", "what is a socket"), 1.0)

    def test_normalized_by_longer_string(self):
        # one deletion out of ten characters
        self.assertAlmostEqual(similarity("abcdefghij", "abcdefghi"), 0.9)

    def test_threshold_is_strict(self):
        # distance 1 over 5 characters -> exactly 0.8, not similar
        self.assertAlmostEqual(similarity("abcde", "abcdx"), 0.8)
        self.assertFalse(is_similar("abcde", "abcdx"))
        self.assertTrue(is_similar("How do I use a mutex?", "How do I use a mutex"))

if __name__ == '__main__':
    unittest.main()
