"""Shared fakes for orchestration tests."""

import json

from structask.core.types import FunctionDefinition, StrictModel
from structask.llm.completion_types import CompletionResponse
from structask.llm.messages import ToolCall
from structask.prompting.schema import schema_for


class ArithmeticResponse(StrictModel):
    answer: str
    difficulty_rating: str


class SumParams(StrictModel):
    addends: list[float]


class MultParams(StrictModel):
    multiplicands: list[float]


class Sum:
    def __init__(self):
        self.calls = []

    def definition(self):
        return FunctionDefinition(
            name="sum", description="adds numbers", parameters=schema_for(SumParams)
        )

    def compute(self, arguments):
        self.calls.append(arguments)
        params = SumParams.model_validate_json(arguments)
        return f"{sum(params.addends):f}"


class Mult:
    def __init__(self):
        self.calls = []

    def definition(self):
        return FunctionDefinition(
            name="mult", description="multiplies numbers", parameters=schema_for(MultParams)
        )

    def compute(self, arguments):
        self.calls.append(arguments)
        product = 1.0
        for x in MultParams.model_validate_json(arguments).multiplicands:
            product *= x
        return f"{product:f}"


class FailingTool:
    def definition(self):
        return FunctionDefinition(name="broken", description="always fails")

    def compute(self, arguments):
        raise ZeroDivisionError("division by zero")


class FakeClient:
    """Scripted completion backend that records every request."""

    def __init__(self, responses=(), transcript="transcribed words"):
        self.responses = list(responses)
        self.requests = []
        self.transcribed = []
        self.transcript = transcript

    def complete(self, request):
        self.requests.append(request)
        if not self.responses:
            raise AssertionError("unexpected completion call")
        response = self.responses.pop(0)
        if request.stream is not None and response.content:
            request.stream.write(response.content)
        return response

    def transcribe_av(self, file):
        self.transcribed.append(file)
        return self.transcript


def envelope(answer="400", difficulty="medium", narrative="the answer is 400", **extra):
    data = {
        "conversational_answer": narrative,
        "formal_answer": {"answer": answer, "difficulty_rating": difficulty},
    }
    data.update(extra)
    return json.dumps(data)


def stop(content):
    return CompletionResponse(raw_finish_reason="stop", content=content)


def tool_calls(*calls):
    return CompletionResponse(
        raw_finish_reason="tool_calls",
        tool_calls=[ToolCall(id=i, name=n, arguments=a) for i, n, a in calls],
    )
