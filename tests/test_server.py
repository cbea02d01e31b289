"""Test the Flask endpoints"""

import unittest
from contextlib import closing, redirect_stderr
from io import StringIO

from server import app

BALANCED_GRAMMAR = "S -> a S b\nS -> epsilon\n"


class ServerTestCase(unittest.TestCase):
    def setUp(self):
        app.config["TESTING"] = True
        self.client = app.test_client()

    def post(self, url, payload):
        # Endpoints report progress on stderr
        with closing(StringIO()) as err, redirect_stderr(err):
            return self.client.post(url, json=payload)


class TestBuildParseTable(ServerTestCase):
    def test_balanced_grammar(self):
        response = self.post("/build-parse-table", {"grammar": BALANCED_GRAMMAR})
        self.assertEqual(response.status_code, 200)
        data = response.get_json()
        self.assertTrue(data["success"])
        self.assertEqual(data["start_symbol"], "S")
        self.assertEqual(data["first_sets"], {"S": ["a", "epsilon"]})
        self.assertEqual(data["follow_sets"], {"S": ["$", "b"]})
        self.assertEqual(data["parse_table"], {
            "S,$": "S -> epsilon",
            "S,a": "S -> a S b",
            "S,b": "S -> epsilon",
        })
        self.assertEqual(data["conflicts"], [])
        self.assertIn("<table", data["parse_table_html"])

    def test_missing_grammar(self):
        response = self.post("/build-parse-table", {})
        self.assertEqual(response.status_code, 400)

    def test_non_object_body(self):
        response = self.post("/build-parse-table", ["S -> a"])
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()["error"], "No grammar provided")

    def test_conflicts_reported(self):
        response = self.post("/build-parse-table", {"grammar": "S -> a\nS -> a b\n"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.get_json()["conflicts"]), 1)

    def test_reject_policy(self):
        response = self.post("/build-parse-table", {"grammar": "S -> a\nS -> a b\n",
                                                    "conflict_policy": "reject"})
        self.assertEqual(response.status_code, 400)
        data = response.get_json()
        self.assertEqual(data["error_type"], "grammar_error")
        self.assertEqual(len(data["conflicts"]), 1)

    def test_unknown_policy(self):
        response = self.post("/build-parse-table", {"grammar": BALANCED_GRAMMAR,
                                                    "conflict_policy": "ignore"})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()["error_type"], "config_error")

    def test_strict_epsilon(self):
        response = self.post("/build-parse-table", {"grammar": "A -> B c\nB -> epsilon\n",
                                                    "strict_epsilon": True})
        self.assertEqual(response.get_json()["first_sets"]["A"], ["c"])


class TestParseTokens(ServerTestCase):
    def test_accept(self):
        response = self.post("/parse-tokens", {"grammar": BALANCED_GRAMMAR,
                                               "tokens": "1 a a\n2 a a\n3 b b\n4 b b\n"})
        self.assertEqual(response.status_code, 200)
        data = response.get_json()
        self.assertEqual(data["verdict"], "YES")
        self.assertTrue(data["accepted"])
        self.assertIsNone(data["diagnostic"])
        self.assertTrue(data["parse_tree_dot"].startswith("digraph"))
        self.assertEqual(data["derivation"], ["S -> a S b", "S -> a S b", "S -> epsilon"])

    def test_reject(self):
        response = self.post("/parse-tokens", {"grammar": BALANCED_GRAMMAR,
                                               "tokens": "1 a a\n2 a a\n3 b b\n"})
        self.assertEqual(response.status_code, 200)
        data = response.get_json()
        self.assertEqual(data["verdict"], "NO")
        self.assertEqual(data["diagnostic"], "Syntax error at line 3: expected 'b' but found '$'")
        self.assertIsNone(data["parse_tree_dot"])
        self.assertIn("Syntax Error", data["error_html"])

    def test_empty_stream(self):
        response = self.post("/parse-tokens", {"grammar": BALANCED_GRAMMAR, "tokens": ""})
        self.assertEqual(response.get_json()["verdict"], "YES")

    def test_missing_tokens(self):
        response = self.post("/parse-tokens", {"grammar": BALANCED_GRAMMAR})
        self.assertEqual(response.status_code, 400)

    def test_non_object_body(self):
        response = self.post("/parse-tokens", "S -> a")
        self.assertEqual(response.status_code, 400)

    def test_malformed_tokens(self):
        response = self.post("/parse-tokens", {"grammar": BALANCED_GRAMMAR, "tokens": "1 a\n"})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()["error_type"], "token_stream_error")

    def test_empty_grammar(self):
        response = self.post("/parse-tokens", {"grammar": "nothing here", "tokens": "1 a a\n"})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()["error_type"], "grammar_error")
