"""Vendor adapters for LLMProvider."""
