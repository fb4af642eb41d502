"""Service layer — resolution operations returning ServiceResult.

Services may import from domain, engine, components, plugins, config and
infrastructure. They must never import from commands or output.
"""
