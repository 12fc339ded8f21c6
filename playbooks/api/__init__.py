"""FastAPI service for playbook resolution and prompt building."""
