"""pageask: answer questions about web pages, grounded in their content."""

__version__ = "0.1.0"
