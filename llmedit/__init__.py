"""Editor-side text generation jobs driven by an external LLM command."""

__version__ = "0.1.0"
