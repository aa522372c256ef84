"""Core infrastructure: LLM and embedding providers, persistence, collaborators, factories."""
