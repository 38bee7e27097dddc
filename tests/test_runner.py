#!/usr/bin/env python3
"""
Tests for the sequential stress test runner (workbench/runner.py).

Usage:
    python3 -m unittest tests.test_runner -v
"""

import asyncio
import os
import sys
import unittest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from workbench.errors import UpstreamError  # noqa: E402
from workbench.models import (  # noqa: E402
    AnalyzeResult,
    ConversationReply,
    Evaluation,
    PromptAnalysis,
    StressTest,
)
from workbench.runner import ConversationTurn, StressTestRunner, run_qa  # noqa: E402


def run_async(coro):
    """Helper to run async coroutines in sync test methods."""
    return asyncio.run(coro)


TESTS = [
    StressTest(question="Q1", ideal_answer="I1"),
    StressTest(question="Q2", ideal_answer="I2"),
    StressTest(question="Q3", ideal_answer="I3"),
]


class ScriptedAgent:
    """simulate/evaluate stand-ins that log the order of every call."""

    def __init__(self, fail_simulate=(), fail_evaluate=()):
        self.fail_simulate = set(fail_simulate)
        self.fail_evaluate = set(fail_evaluate)
        self.log = []
        self.active = 0
        self.max_active = 0

    async def simulate(self, user_prompt, message):
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        self.log.append(("simulate", message))
        await asyncio.sleep(0)
        self.active -= 1
        if message in self.fail_simulate:
            raise UpstreamError("Dify", 502)
        return ConversationReply(response=f"answer to {message}", conversation_id="c")

    async def evaluate(self, user_prompt, question, ideal_answer, actual_answer):
        self.log.append(("evaluate", question))
        if question in self.fail_evaluate:
            raise RuntimeError("judge down")
        return Evaluation(score=8, feedback=f"graded {actual_answer}")


class TestConversationTurn(unittest.TestCase):

    def test_start_is_loading(self):
        turn = ConversationTurn.start(TESTS[0])
        self.assertTrue(turn.loading)
        self.assertFalse(turn.finished)
        self.assertEqual(turn.question, "Q1")

    def test_finished_turn_is_frozen(self):
        turn = ConversationTurn.start(TESTS[0])
        turn.answer = "a"
        turn.finish()
        self.assertFalse(turn.loading)
        self.assertTrue(turn.finished)
        with self.assertRaises(AttributeError):
            turn.answer = "changed"

    def test_to_dict_wire_keys(self):
        turn = ConversationTurn.start(TESTS[0])
        turn.evaluation = Evaluation(score=5, feedback="f")
        turn.finish()
        self.assertEqual(
            turn.to_dict(),
            {
                "pergunta_capciosa": "Q1",
                "resposta_ideal": "I1",
                "aiResponse": "",
                "isLoading": False,
                "error": "",
                "evaluation": {"score": 5, "feedback": "f"},
            },
        )


class TestStressTestRunner(unittest.TestCase):

    def test_strictly_sequential(self):
        agent = ScriptedAgent()
        turns = run_async(StressTestRunner(agent.simulate, agent.evaluate).run("P", TESTS))

        self.assertEqual(
            agent.log,
            [
                ("simulate", "Q1"), ("evaluate", "Q1"),
                ("simulate", "Q2"), ("evaluate", "Q2"),
                ("simulate", "Q3"), ("evaluate", "Q3"),
            ],
        )
        self.assertEqual(agent.max_active, 1)
        self.assertEqual([t.evaluation.score for t in turns], [8, 8, 8])
        self.assertTrue(all(t.finished for t in turns))

    def test_observer_sees_loading_then_done(self):
        agent = ScriptedAgent()
        seen = []
        runner = StressTestRunner(
            agent.simulate,
            agent.evaluate,
            observer=lambda i, t: seen.append((i, t.loading)),
        )
        run_async(runner.run("P", TESTS[:2]))
        self.assertEqual(seen, [(0, True), (0, False), (1, True), (1, False)])

    def test_conversation_failure_isolated(self):
        agent = ScriptedAgent(fail_simulate={"Q2"})
        turns = run_async(StressTestRunner(agent.simulate, agent.evaluate).run("P", TESTS))

        self.assertTrue(turns[1].error)
        self.assertIsNone(turns[1].evaluation)
        self.assertFalse(turns[1].loading)
        self.assertNotIn(("evaluate", "Q2"), agent.log)
        self.assertEqual(turns[2].evaluation.score, 8)

    def test_evaluation_failure_scores_zero(self):
        agent = ScriptedAgent(fail_evaluate={"Q1"})
        turns = run_async(StressTestRunner(agent.simulate, agent.evaluate, locale="en").run("P", TESTS[:1]))

        self.assertEqual(turns[0].evaluation.score, 0)
        self.assertEqual(turns[0].evaluation.feedback, "Error while evaluating the answer.")
        self.assertEqual(turns[0].answer, "answer to Q1")
        self.assertEqual(turns[0].error, "")

    def test_observer_errors_do_not_stop_the_run(self):
        agent = ScriptedAgent()

        def observer(index, turn):
            raise ValueError("ui gone")

        turns = run_async(StressTestRunner(agent.simulate, agent.evaluate, observer=observer).run("P", TESTS))
        self.assertEqual(len(turns), 3)

    def test_no_tests(self):
        agent = ScriptedAgent()
        self.assertEqual(run_async(StressTestRunner(agent.simulate, agent.evaluate).run("P", [])), [])


class TestRunQA(unittest.TestCase):

    def test_report(self):
        agent = ScriptedAgent(fail_simulate={"Q3"})

        class FakeWorkbench:
            simulate = staticmethod(agent.simulate)
            evaluate = staticmethod(agent.evaluate)

            async def analyze(self, user_prompt):
                return AnalyzeResult(analysis=PromptAnalysis(overall_score=6), stress_tests=TESTS)

        report = run_async(run_qa(FakeWorkbench(), "P"))
        self.assertEqual(report.analysis.overall_score, 6)
        self.assertEqual(len(report.turns), 3)
        self.assertEqual(report.average_score, 8)

        data = report.to_dict()
        self.assertEqual(data["analysis"]["overallScore"], 6)
        self.assertEqual(len(data["conversation"]), 3)
        self.assertTrue(data["conversation"][2]["error"])


if __name__ == "__main__":
    unittest.main()
