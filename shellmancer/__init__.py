"""shellmancer: a terminal chatbot that can also drive your shell."""

__version__ = "1.0.0"
