"""Prompt assembly helpers used by core orchestration.

This module only builds messages from already validated inputs. File routing,
tool binding and model invocation happen outside this module.

Design constraints:
    - Deterministic construction for identical inputs.
    - Fixed ordering of components per turn (see `core.engine.ask`).
    - No I/O, no global state mutation.

Schema injection model:
    - The answer schema is injected once, on the first turn of a fresh
      conversation; continuation turns rely on the conversation history.
    - Examples are injected on every turn they are supplied.
"""

from structask.core.types import Answer, Example
from structask.llm.messages import Message, system_message, user_message
from structask.prompting.schema import render_schema


# =========================================================
# SYSTEM IDENTITY (FIRST TURN)
# =========================================================
# Prepended to a fresh conversation, before any background material.

SYSTEM_IDENTITY = (
    "You are a helpful assistant that answers every request with a single json "
    "object. Your responses are parsed by a program, so they must be valid json "
    "with no surrounding text, comments, or markdown."
)

ANSWER_FORMAT = (
    "Your json object always has two fields: a free-form, high-level answer "
    "written for a human reader, and a formal answer that strictly follows the "
    "schema you will be given. Do not add fields that the schema does not declare. "
    "When tools are available, use them for any computation instead of guessing."
)


def build_system_prompts() -> list[Message]:
    return [system_message(SYSTEM_IDENTITY), system_message(ANSWER_FORMAT)]


# =========================================================
# SCHEMA
# =========================================================

def build_schema_message(answer_type) -> Message:
    """Build the message carrying the envelope's JSON schema for `answer_type`."""
    schema = render_schema(Answer[answer_type])
    return user_message(f"the schema of your json answer must match: {schema}")


# =========================================================
# EXAMPLES
# =========================================================
# Example order is preserved; numbering starts at 1.
# Bare answers are treated as examples for the current question's prompt.

def clean_text(s: str) -> str:
    """Collapse all runs of whitespace into single spaces."""
    return " ".join(s.split())


def normalize_examples(examples, prompt: str) -> list[Example]:
    return [e if isinstance(e, Example) else Example(prompt=prompt, answer=e) for e in examples]


def build_examples_message(examples, answer_type, prompt: str) -> Message | None:
    """Render examples as complete envelopes in one consolidated message.

    Returns:
        The message, or `None` when there are no examples.
    """
    examples = normalize_examples(examples, prompt)
    if not examples:
        return None

    envelope = Answer[answer_type]
    text = (
        f"here are {len(examples)} fictitious example(s) for how your json "
        "responses may look like in practice:\n\n"
    )
    for i, e in enumerate(examples, start=1):
        answer = envelope(
            conversational_answer=clean_text(
                f'freeform text about answering question "{e.prompt}"'
            ),
            formal_answer=e.answer,
        )
        text += (
            f'example #{i} in response to prompt "{e.prompt}": '
            f"{answer.model_dump_json(indent=2)}\n\n"
        )
    return user_message(text)


# =========================================================
# CORRECTIVE RE-PROMPT
# =========================================================

def build_correction_message(error) -> Message:
    return user_message(
        f"oops, i got an error parsing your response as json: {error}. could you "
        "please re-do with correct json having no extraneous characters, etc?"
    )
