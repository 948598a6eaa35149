"""Tool registry binding for function-calling backends."""
