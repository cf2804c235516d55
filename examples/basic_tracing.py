#!/usr/bin/env python3
"""Basic tracing -- manual traces, the @track decorator, feedback and cost.

Sends telemetry for a toy question-answering flow:
  1. A manual trace with a retrieval span and an LLM span
  2. The same flow instrumented with @track
  3. Feedback scores on the trace and on the LLM span

Requirements:
    pip install spanline
    A collector listening on http://localhost:5173/api/ (or set
    SPANLINE_URL_OVERRIDE, SPANLINE_API_KEY and SPANLINE_WORKSPACE)
"""

from __future__ import annotations

import logging

from spanline import (
    FeedbackScore,
    SpanlineClient,
    SpanType,
    Usage,
    calculate_cost_per_million,
    set_client,
    track,
)

logging.basicConfig(level=logging.INFO)

DOCUMENTS = {
    "paris": "Paris is the capital and largest city of France.",
    "rome": "Rome is the capital city of Italy.",
}


def _retrieve(question: str) -> list[str]:
    words = {w.strip("?.,").lower() for w in question.split()}
    return [text for key, text in DOCUMENTS.items() if key in words]


def _answer(question: str, context: list[str]) -> tuple[str, Usage]:
    text = context[0] if context else "I don't know."
    usage = Usage(prompt_tokens=len(question) + sum(map(len, context)), completion_tokens=len(text))
    return text, usage


# -- Manual instrumentation --


def manual(client: SpanlineClient, question: str) -> str:
    with client.trace(
        "qa-manual",
        input={"question": question},
        tags=["example"],
        thread_id="example-thread",
    ) as trace:
        with trace.span("retrieve", type=SpanType.TOOL, input={"question": question}) as span:
            context = _retrieve(question)
            span.update(output={"documents": context})

        with trace.span("answer", type=SpanType.LLM) as llm:
            text, usage = _answer(question, context)
            llm.update(
                output={"text": text},
                model="toy-model",
                provider="local",
                usage=usage,
                total_cost=calculate_cost_per_million(usage, 0.15, 0.60),
            )
            llm.log_feedback_score("fluency", value=0.8)

        trace.update(output={"answer": text})
        trace.log_feedback_score("correct", category_name="yes", reason="matches source")
    return text


# -- Decorator instrumentation --


@track(type=SpanType.TOOL)
def retrieve(question: str) -> list[str]:
    return _retrieve(question)


@track(name="answer", type=SpanType.LLM)
def answer(question: str, context: list[str]) -> str:
    return _answer(question, context)[0]


@track(name="qa-decorated")
def qa(question: str) -> str:
    return answer(question, retrieve(question))


def main() -> None:
    with SpanlineClient(project_name="spanline-examples") as client:
        print(manual(client, "What is the capital of France?"))

        set_client(client)
        print(qa("Tell me about Rome."))
        set_client(None)

        # Threads accept scores only once their traces are stored and closed.
        client.flush()
        client.close_thread("example-thread")
        scores = [FeedbackScore.for_thread("example-thread", "helpfulness", value=4)]
        client.log_threads_feedback_scores(scores)


if __name__ == "__main__":
    main()
