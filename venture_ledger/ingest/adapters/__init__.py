"""Per-source CSV adapters mapping a parsed table to transactions."""
