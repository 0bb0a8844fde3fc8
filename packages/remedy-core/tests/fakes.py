"""Test doubles and canned model responses."""

import asyncio
import json


class FakeReasoningClient:
    """
    ReasoningClient replaying scripted responses.

    Each entry is returned in order (the last one repeats). An exception
    instance is raised instead of returned. Every prompt is recorded.
    """

    def __init__(self, responses, delay: float = 0.0):
        self.responses = list(responses)
        self.delay = delay
        self.prompts: list[str] = []
        self.timeouts: list[float | None] = []

    @property
    def model_name(self) -> str:
        return "fake-model"

    @property
    def provider(self) -> str:
        return "fake"

    async def complete(self, prompt: str, timeout: float | None = None) -> str:
        self.prompts.append(prompt)
        self.timeouts.append(timeout)
        if self.delay:
            await asyncio.sleep(self.delay)
        index = min(len(self.prompts), len(self.responses)) - 1
        response = self.responses[index]
        if isinstance(response, BaseException):
            raise response
        return response


def action_response(action: str, params: dict, reasoning: str = "acting") -> str:
    return json.dumps({
        "reasoning": reasoning,
        "resolved": False,
        "next_action": {"name": action, "action": action, "description": "test", "params": params},
    })


def observe_response(reasoning: str = "waiting for rollout") -> str:
    return json.dumps({"reasoning": reasoning, "resolved": False, "next_action": None})


def resolved_response(reasoning: str = "all pods ready") -> str:
    return json.dumps({
        "reasoning": reasoning,
        "resolved": True,
        "next_action": None,
        "postmortem_summary": "api pods were OOMKilled; memory limit raised",
        "root_cause": "memory limit too low for peak traffic",
        "impact": "5 minutes of elevated 5xx",
        "lessons_learned": ["size limits from load tests"],
        "prevention_actions": ["add memory alerts at 80%"],
    })


