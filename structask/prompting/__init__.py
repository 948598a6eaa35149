"""Prompt construction package (system prompts, answer schema, examples)."""
