"""
Core wiring shared by every layer.

- ports.py: Protocols for external collaborators (extraction, storage, identity)
- errors.py: error taxonomy and user-facing messages
- state.py: AppState used by the console
"""
