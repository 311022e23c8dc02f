"""Live viewer for gRPC messages captured as JSON lines."""

__version__ = "0.3.0"
