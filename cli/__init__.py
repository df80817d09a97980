"""Premium Reader command line."""
