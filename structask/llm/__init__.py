"""LLM access package.

Architectural role:
    Provides provider configuration, the conversation message model, and the
    transport used by the orchestration core to reach completion and
    transcription backends.

Module split:
    - `provider_config`: environment-driven model, endpoint and key configuration.
    - `messages`: role-tagged messages and tool calls in wire format.
    - `completion_types`: request/response contracts and closed enumerations.
    - `client`: OpenAI-compatible HTTP transport (streaming and non-streaming).
    - `streaming`: fan-out writer for streamed content.
    - `transcription`: upload naming for the transcription endpoint.
"""
