"""Server building blocks: byte buffers, streams, configuration, logging, timers, HTTP messages, servlets and a Raft log."""

__version__ = "0.1.0"