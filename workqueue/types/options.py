"""
Delivery options attached to a single publish.
"""

from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    SerializerFunctionWrapHandler,
    model_serializer,
)

from workqueue.types.duration import Duration


class Options(BaseModel):
    """
    Delivery configuration for one event.

    Every field is optional; an unset field is None and is left out of the
    wire form so the backend applies its own default. Options() with nothing
    set means "use backend defaults".
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    queue_type: str | None = Field(default=None, description="Backend queue class")
    max_retries: int | None = Field(default=None, ge=0, description="Maximum delivery retries")
    schedule_in: Duration | None = Field(
        default=None, description="Delay before the first delivery attempt"
    )
    retention: Duration | None = Field(
        default=None, description="How long the backend keeps the job record"
    )
    unique_ttl: Duration | None = Field(default=None, description="Deduplication window")

    @model_serializer(mode="wrap")
    def _omit_unset(self, handler: SerializerFunctionWrapHandler) -> dict[str, Any]:
        return {key: value for key, value in handler(self).items() if value is not None}

    def is_empty(self) -> bool:
        """Check if no field has been set."""
        return all(getattr(self, name) is None for name in type(self).model_fields)

    def to_wire(self) -> dict[str, Any]:
        """Get the JSON-ready mapping sent as "opts"."""
        return self.model_dump(mode="json")


class OptionsBuilder:
    """
    Fluent builder for Options.

    Example:
        opts = (
            OptionsBuilder()
            .with_queue_type("internal.critical")
            .with_max_retries(5)
            .with_retention("168h")
            .with_schedule_in("5min")
            .build()
        )
    """

    def __init__(self) -> None:
        self._fields: dict[str, Any] = {}

    def with_queue_type(self, queue_type: str) -> "OptionsBuilder":
        self._fields["queue_type"] = queue_type
        return self

    def with_max_retries(self, max_retries: int) -> "OptionsBuilder":
        self._fields["max_retries"] = max_retries
        return self

    def with_schedule_in(self, schedule_in: Duration | str) -> "OptionsBuilder":
        """Set the delay before the first delivery attempt."""
        self._fields["schedule_in"] = schedule_in
        return self

    def with_retention(self, retention: Duration | str) -> "OptionsBuilder":
        """Set how long the backend keeps the job record."""
        self._fields["retention"] = retention
        return self

    def with_unique_ttl(self, unique_ttl: Duration | str) -> "OptionsBuilder":
        """Set the deduplication window."""
        self._fields["unique_ttl"] = unique_ttl
        return self

    def build(self) -> Options:
        """
        Build the Options.

        The builder keeps its state and may be reused afterwards.

        Raises:
            pydantic.ValidationError: If a value is out of range or a duration
                string does not parse.
        """
        return Options(**self._fields)
