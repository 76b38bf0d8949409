"""Infrastructure adapters: decoders, temporary files, event logging."""
