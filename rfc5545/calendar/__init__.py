"""Component parsing, serialization and host adapter."""
