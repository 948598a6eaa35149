"""Core orchestration package.

Architectural role:
    Exposes the round-trip loop that sits between callers and the lower-level
    subsystems (file routing, prompting, tool binding and the LLM transport).

Composition:
    - `engine`: the completion round-trip loop (`ask`).
    - `types`: question, tool and answer-envelope contracts.
    - `conversation`: append-only message log for one run.
    - `retry`: bounded budget for answer-parse failures.
    - `errors`: the error taxonomy.

Determinism and side effects:
    Package import itself is deterministic and side-effect free.
"""
