"""Core infrastructure: exceptions, logging, settings and template I/O."""
