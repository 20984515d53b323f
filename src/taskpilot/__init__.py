"""
taskpilot: natural-language task ingestion with owner-scoped storage.

Subpackages:
- tasks/: data model, normalizer, lifecycle rules, stores, service facade
- llm/: extraction capability (OpenAI-compatible and offline)
- auth/: identity capability
- core/: ports, errors, application state
- cli/ + connectors/: console presentation layer
"""
