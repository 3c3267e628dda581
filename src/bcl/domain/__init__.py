"""Domain layer — command model, token classification, record rows.

This layer depends only on stdlib and pydantic.
It must never import from services, infrastructure, commands, or config.
"""
