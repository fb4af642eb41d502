"""Configuration layer — settings file discovery, settings models, logging."""
