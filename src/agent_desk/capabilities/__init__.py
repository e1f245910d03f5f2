"""
Capabilities an agent can expose.

- catalog.py: built-in definitions and conversion of external tools into capabilities
- prompts.py: prompt templates and renderers
- dispatcher.py: routes an invocation to its handler
"""
