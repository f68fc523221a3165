"""
Fieldnotes service package.

Design intent:
- Persist one profile per email and one field report per (user, session).
- Keep storage, services and the HTTP boundary independent of each other.
"""
