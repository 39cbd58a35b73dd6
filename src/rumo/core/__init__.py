"""Core infrastructure: config, events, storage, errors, logging, CLI."""
