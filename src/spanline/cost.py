"""Cost estimation for LLM calls from token usage and caller-supplied prices."""

from __future__ import annotations

from spanline.tracer.models import Usage

_TOKENS_PER_MILLION = 1_000_000


def calculate_cost(
    usage: Usage,
    input_cost_per_token: float,
    output_cost_per_token: float,
) -> float:
    """Compute the cost of a call priced per token.

    Missing token counts count as zero.

    Parameters:
        usage: Token usage reported for the call.
        input_cost_per_token: Price of one prompt token
            (e.g. ``0.0000025`` for $2.50 per million).
        output_cost_per_token: Price of one completion token.

    Returns:
        The total cost, suitable for ``Span.update(total_cost=...)``.
    """
    input_cost = (usage.prompt_tokens or 0) * input_cost_per_token
    output_cost = (usage.completion_tokens or 0) * output_cost_per_token
    return input_cost + output_cost


def calculate_cost_per_million(
    usage: Usage,
    input_cost_per_million: float,
    output_cost_per_million: float,
) -> float:
    """Compute the cost of a call priced per million tokens."""
    return calculate_cost(
        usage,
        input_cost_per_million / _TOKENS_PER_MILLION,
        output_cost_per_million / _TOKENS_PER_MILLION,
    )
