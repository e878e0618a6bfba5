"""Command handlers. Each returns a result or raises; none exit the process."""
