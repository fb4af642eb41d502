"""Infrastructure layer — reading service manifests and override files.

This layer depends on stdlib, pydantic and ruamel.yaml plus the domain
types it parses into. It must never import from engine, services or commands.
"""
