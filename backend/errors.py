"""
Error taxonomy shared by the service and the HTTP layer.

- `ValidationError` is client-caused; `main.py` maps it to 400 and shows
  the message verbatim.
- `EventNotFound` maps to 404.
Anything else is treated as internal (500) and only logged server-side.
"""


class ValidationError(ValueError):
    """An event (or request) broke a structural rule."""


class EventNotFound(LookupError):
    """Update/delete targeted an id the store does not hold."""

    def __init__(self, event_id: str):
        super().__init__("Event not found")
        self.event_id = event_id
