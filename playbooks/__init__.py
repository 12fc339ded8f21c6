"""Agent Playbooks - task briefings for AI coding agents.

This package turns declarative playbook definitions into agent prompts:
- Playbook definitions (strategies, checks, policies, knowledge queries)
- Resolver (deterministic scoring of playbooks against a task)
- Prompt composer (six fixed layers assembled into one prompt)
- Knowledge augmentation (retrieved context merged into the prompt)
"""

__version__ = "0.1.0"
