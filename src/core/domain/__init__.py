"""Domain models and page views.

Pure, strict data structures (Pydantic v2). Nothing here knows about HTTP,
the CLI or the AI provider.
"""
