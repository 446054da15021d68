"""
api_template.observability

Observability package.

Responsibilities:
- Structured logging configuration.
- Request context propagation (request ids) for log enrichment and error bodies.
"""

# Package marker.
