#!/usr/bin/env python3
"""
Tests for tolerant JSON extraction from model output.

Usage:
    python3 -m unittest tests.test_jsonparse -v
"""

import os
import sys
import unittest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from workbench.errors import MalformedUpstreamJSON, WorkflowSynthesisFailed  # noqa: E402
from workbench.jsonparse import parse_model_json  # noqa: E402


class TestParseModelJson(unittest.TestCase):

    def test_plain_object(self):
        self.assertEqual(parse_model_json('{"score": 7, "feedback": "ok"}'), {"score": 7, "feedback": "ok"})

    def test_code_fence(self):
        raw = '```json\n{"a": [1, 2]}\n```'
        self.assertEqual(parse_model_json(raw), {"a": [1, 2]})

    def test_prose_around_object(self):
        raw = 'Here is the workflow:\n{"nodes": [], "connections": {}}\nLet me know!'
        self.assertEqual(parse_model_json(raw), {"nodes": [], "connections": {}})

    def test_not_json(self):
        with self.assertRaises(MalformedUpstreamJSON) as ctx:
            parse_model_json("I cannot help with that.")
        self.assertEqual(ctx.exception.message_key, "malformed_json")
        self.assertEqual(ctx.exception.status_code, 500)

    def test_broken_object(self):
        with self.assertRaises(MalformedUpstreamJSON):
            parse_model_json('{"nodes": [}')

    def test_top_level_must_be_object(self):
        with self.assertRaises(MalformedUpstreamJSON):
            parse_model_json("[1, 2, 3]")

    def test_custom_error_class_and_key(self):
        with self.assertRaises(WorkflowSynthesisFailed):
            parse_model_json("nope", error_cls=WorkflowSynthesisFailed)
        with self.assertRaises(MalformedUpstreamJSON) as ctx:
            parse_model_json("nope", message_key="malformed_evaluation")
        self.assertEqual(ctx.exception.message_key, "malformed_evaluation")

    def test_deeply_nested_output(self):
        depth = 100000
        raw = '{"a": ' + "[" * depth + "]" * depth + "}"
        with self.assertRaises(MalformedUpstreamJSON):
            parse_model_json(raw)
        with self.assertRaises(MalformedUpstreamJSON):
            parse_model_json("[" * depth + "]" * depth)

    def test_empty_text(self):
        with self.assertRaises(MalformedUpstreamJSON):
            parse_model_json("")


if __name__ == "__main__":
    unittest.main()
