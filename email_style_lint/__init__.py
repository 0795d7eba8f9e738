"""Email client CSS compatibility linting for JSX/TSX templates."""

__version__ = "0.1.0"
