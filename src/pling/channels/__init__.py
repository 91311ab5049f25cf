"""Channel implementations, one module per backend."""
