"""keylight: signal-driven per-key keyboard lighting."""

__version__ = "0.1.0"
