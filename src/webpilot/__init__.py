"""webpilot: a JSON-RPC control surface for a single Playwright-driven browser."""

__version__ = "0.1.0"
