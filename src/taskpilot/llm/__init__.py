"""
Extraction capability.

- client.py: OpenAI-compatible chat completion in JSON mode
- offline.py: deterministic regex extractor for runs without an API key
- prompts.py: extraction prompt with an explicit reference date
"""
