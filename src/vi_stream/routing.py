"""
Request Routing Decisions
=========================

Pure helpers the HTTP layer uses to decide how to answer a request.
"""

from typing import Iterable, Optional


DEFAULT_TERMINAL_AGENTS = ("curl", "wget")


def should_stream(
    user_agent: Optional[str],
    terminal_agents: Iterable[str] = DEFAULT_TERMINAL_AGENTS,
) -> bool:
    """
    Whether a client should receive the animation stream.

    Requests without a user agent are streamed. Otherwise the user agent
    must contain one of the terminal agent tokens (case-insensitive);
    everything else is redirected.
    """
    if not user_agent:
        return True

    ua = user_agent.lower()
    return any(token and token.lower() in ua for token in terminal_agents)


def parse_flip(value: Optional[str]) -> bool:
    """Only the string "true" (any case) enables the flip transform."""
    if value is None:
        return False
    return str(value).lower() == "true"
