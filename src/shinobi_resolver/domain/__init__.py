"""Domain layer — schema model, layers, violations, and naming rules.

This layer depends only on stdlib and pydantic.
It must never import from engine, services, components, or config.
"""
