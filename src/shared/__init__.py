"""Shared kernel: identity variants, error taxonomy, money, configuration,
logging and the database unit of work used by every bounded context."""
