"""
Caller-facing publish request.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict

from workqueue.types.options import Options


class Input(BaseModel):
    """
    An event to publish.

    No field is checked here; a non-empty event name is enforced by the
    producer at publish time.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    event: str = ""
    data: Any = None
    options: Options | None = None
    # Carried to the backend under metadata.headers
    correlation_id: str = ""
    event_id: str = ""


class InputBuilder:
    """
    Fluent builder for Input.

    Example:
        event_input = (
            InputBuilder()
            .with_event("user.created")
            .with_data({"input": "value"})
            .with_options(opts)
            .build()
        )
    """

    def __init__(self) -> None:
        self._fields: dict[str, Any] = {}

    def with_event(self, event: str) -> "InputBuilder":
        self._fields["event"] = event
        return self

    def with_data(self, data: Any) -> "InputBuilder":
        self._fields["data"] = data
        return self

    def with_options(self, options: Options) -> "InputBuilder":
        self._fields["options"] = options
        return self

    def with_correlation_id(self, correlation_id: str) -> "InputBuilder":
        self._fields["correlation_id"] = correlation_id
        return self

    def with_event_id(self, event_id: str) -> "InputBuilder":
        self._fields["event_id"] = event_id
        return self

    def build(self) -> Input:
        """Build the Input without validating it."""
        return Input(**self._fields)
