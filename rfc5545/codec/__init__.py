"""Property-level encoders and decoders."""
