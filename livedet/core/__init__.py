"""Frame I/O."""
