"""Kibitzer: a chess move picker that cascades from an opening book to a
remote LLM and finally to a local UCI engine, with a remark for every move."""

__version__ = "0.1.0"
