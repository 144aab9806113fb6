"""Fake model invokers shared by the test modules."""

import json


class FakeModel:
    """
    Stand-in for a model invocation.

    `handler` receives the prompt and returns response text or raises.
    """

    def __init__(self, handler):
        self.handler = handler
        self.prompts = []

    @property
    def call_count(self):
        return len(self.prompts)

    async def __call__(self, prompt):
        self.prompts.append(prompt)
        return self.handler(prompt)


def extract_batch(prompt):
    """Recover the batch JSON object embedded at the end of a translation prompt."""
    start = prompt.index("Translate each of the following messages:")
    return json.loads(prompt[prompt.index("{", start):])


def prefix_translation(prefix):
    """Handler translating every message in the prompt's batch as '<prefix> <source>'."""
    def handler(prompt):
        batch = extract_batch(prompt)
        return json.dumps({key: f"{prefix} {value}" for key, value in batch.items()})
    return handler


def fixed_response(text):
    """Handler always returning the same text."""
    return lambda prompt: text


def failing_then(failures, error_message, response):
    """Handler raising `failures` times with error_message, then returning response."""
    state = {"calls": 0}

    def handler(prompt):
        state["calls"] += 1
        if state["calls"] <= failures:
            raise Exception(error_message)
        return response
    return handler
