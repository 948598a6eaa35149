"""Multimodal preprocessing package.

Architectural role:
- Converts background files into conversation messages by content type.
- Renders PDFs to text.

Scope:
- Content preprocessing only; transcription is delegated to the LLM client.
"""
