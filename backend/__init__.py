"""Premium Reader backend."""
