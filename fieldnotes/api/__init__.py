"""
HTTP boundary for the fieldnotes service.

Design intent:
- Expose one endpoint per service operation.
- Map Envelope failure codes onto HTTP status without changing the body.
"""
