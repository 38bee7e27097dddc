"""
Prompt Workbench - Stress Test Runner

Runs generated stress tests against the target agent and grades each
answer. Tests are processed strictly one at a time, in order: the
upstream quotas are tiny and parallel calls would only trip the rate
limiter sooner. Latency therefore grows linearly with the number of
tests (usually 3).

For every test the runner:
  1. opens a ConversationTurn (loading) and notifies the observer
  2. asks the agent the tricky question
  3. grades the answer against the ideal answer
  4. closes the turn and notifies the observer again

A failed conversation marks that turn with an error and moves on.
A failed evaluation scores the turn 0 instead of failing it.

Run modes:
  - Library:  await StressTestRunner(wb.simulate, wb.evaluate).run(prompt, tests)
  - CLI:      python -m workbench.runner --prompt-file prompt.txt
"""

import asyncio
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional

from workbench.messages import render
from workbench.models import ConversationReply, Evaluation, PromptAnalysis, StressTest

logger = logging.getLogger(__name__)

SimulateFn = Callable[[str, str], Awaitable[ConversationReply]]
EvaluateFn = Callable[[str, str, str, str], Awaitable[Evaluation]]
Observer = Callable[[int, "ConversationTurn"], Any]


@dataclass
class ConversationTurn:
    """One stress test as it moves through conversation and evaluation."""
    question: str
    ideal_answer: str
    answer: str = ""
    loading: bool = True
    error: str = ""
    evaluation: Optional[Evaluation] = None
    conversation_id: Optional[str] = None
    _finished: bool = field(default=False, repr=False, compare=False)

    def __setattr__(self, name: str, value: Any) -> None:
        if getattr(self, "_finished", False):
            raise AttributeError(f"ConversationTurn is finished; cannot set {name}")
        super().__setattr__(name, value)

    @classmethod
    def start(cls, test: StressTest) -> "ConversationTurn":
        return cls(question=test.question, ideal_answer=test.ideal_answer)

    def finish(self) -> None:
        self.loading = False
        self._finished = True

    @property
    def finished(self) -> bool:
        return self._finished

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pergunta_capciosa": self.question,
            "resposta_ideal": self.ideal_answer,
            "aiResponse": self.answer,
            "isLoading": self.loading,
            "error": self.error,
            "evaluation": self.evaluation.model_dump() if self.evaluation else None,
        }


@dataclass
class QAReport:
    """Analysis plus graded conversation turns for one prompt."""
    analysis: Optional[PromptAnalysis]
    turns: List[ConversationTurn] = field(default_factory=list)

    @property
    def average_score(self) -> Optional[float]:
        scores = [t.evaluation.score for t in self.turns if t.evaluation is not None]
        if not scores:
            return None
        return sum(scores) / len(scores)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "analysis": self.analysis.model_dump(by_alias=True) if self.analysis else None,
            "conversation": [t.to_dict() for t in self.turns],
            "average_score": self.average_score,
        }


class StressTestRunner:
    """Sequential task queue over stress tests with a per-update observer."""

    def __init__(
        self,
        simulate: SimulateFn,
        evaluate: EvaluateFn,
        observer: Optional[Observer] = None,
        locale: str = "pt",
    ):
        self._simulate = simulate
        self._evaluate = evaluate
        self._observer = observer
        self.locale = locale

    def _notify(self, index: int, turn: ConversationTurn) -> None:
        if self._observer is None:
            return
        try:
            self._observer(index, turn)
        except Exception as e:
            logger.error(f"Stress test observer failed: {e}", exc_info=True)

    async def run_one(self, index: int, user_prompt: str, test: StressTest) -> ConversationTurn:
        turn = ConversationTurn.start(test)
        self._notify(index, turn)

        try:
            reply = await self._simulate(user_prompt, test.question)
        except Exception as e:
            logger.error(f"Stress test {index + 1}: conversation failed: {e}")
            turn.error = str(e) or e.__class__.__name__
            turn.finish()
            self._notify(index, turn)
            return turn

        turn.answer = reply.response
        turn.conversation_id = reply.conversation_id

        try:
            turn.evaluation = await self._evaluate(user_prompt, test.question, test.ideal_answer, turn.answer)
        except Exception as e:
            logger.error(f"Stress test {index + 1}: evaluation failed: {e}")
            turn.evaluation = Evaluation(score=0, feedback=render("evaluation_failed", self.locale))

        turn.finish()
        self._notify(index, turn)
        return turn

    async def run(self, user_prompt: str, stress_tests: List[StressTest]) -> List[ConversationTurn]:
        turns = []
        for index, test in enumerate(stress_tests):
            turns.append(await self.run_one(index, user_prompt, test))
        return turns


async def run_qa(workbench, user_prompt: str, observer: Optional[Observer] = None, locale: str = "pt") -> QAReport:
    """Analyse ``user_prompt`` and run its stress tests against the agent."""
    result = await workbench.analyze(user_prompt)
    runner = StressTestRunner(workbench.simulate, workbench.evaluate, observer=observer, locale=locale)
    turns = await runner.run(user_prompt, result.stress_tests)
    return QAReport(analysis=result.analysis, turns=turns)


# ─── CLI Entry Point ──────────────────────────────────────────────────────────


def _print_turn(index: int, turn: ConversationTurn) -> None:
    if turn.loading:
        print(f"  … [{index + 1}] {turn.question}")
        return
    if turn.error:
        print(f"  ❌ [{index + 1}] {turn.error}")
        return
    score = turn.evaluation.score if turn.evaluation else "?"
    print(f"  ✅ [{index + 1}] score {score}/10: {turn.evaluation.feedback if turn.evaluation else ''}")


async def _main():
    import argparse

    from api import config
    from api.llm import DifyClient, GeminiClient
    from workbench.pipelines import Workbench
    from workbench.settings import load_pipeline_settings

    parser = argparse.ArgumentParser(
        description="Prompt Workbench - analyse a system prompt and stress-test the agent"
    )
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--prompt-file", type=str, help="File holding the system prompt")
    source.add_argument("--prompt", type=str, help="System prompt text")
    parser.add_argument("--json", action="store_true", help="Print the full report as JSON")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    if args.prompt_file:
        with open(args.prompt_file, "r") as f:
            user_prompt = f.read()
    else:
        user_prompt = args.prompt

    workbench = Workbench(
        llm=GeminiClient.from_config(),
        agent=DifyClient.from_config(),
        settings=load_pipeline_settings(config.PIPELINE_CONFIG),
    )
    report = await run_qa(
        workbench,
        user_prompt,
        observer=None if args.json else _print_turn,
        locale=config.LOCALE,
    )

    if args.json:
        print(json.dumps(report.to_dict(), indent=2, ensure_ascii=False))
        return

    print(f"Overall prompt score: {report.analysis.overall_score}/10")
    for section in report.analysis.sections:
        print(f"  {section.title}: {section.score}/10")
    average = report.average_score
    print(f"Average answer score: {average:.1f}/10" if average is not None else "No answers graded")


if __name__ == "__main__":
    asyncio.run(_main())
