"""
Wire envelope sent to the backend.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic_core import PydanticSerializationError

from workqueue.constants import CORRELATION_ID_KEY, EVENT_ID_KEY, METADATA_HEADERS_KEY
from workqueue.errors import SerializationError
from workqueue.types.event import Input
from workqueue.types.options import Options


class Payload(BaseModel):
    """
    JSON body of a publish request.

    Built by the producer from an Input; callers do not construct it.
    Wire shape:
        {"event_name": ..., "data": ..., "opts": {...},
         "metadata": {"headers": {"correlation_id": ..., "event_id": ...}}}
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    event: str = Field(alias="event_name")
    data: Any = None
    options: Options = Field(default_factory=Options, alias="opts")
    metadata: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_input(cls, event_input: Input, options: Options) -> "Payload":
        """Create the envelope for an input with already-resolved options."""
        return cls(
            event=event_input.event,
            data=event_input.data,
            options=options,
            metadata={
                METADATA_HEADERS_KEY: {
                    CORRELATION_ID_KEY: event_input.correlation_id,
                    EVENT_ID_KEY: event_input.event_id,
                },
            },
        )

    def to_json(self) -> bytes:
        """
        Encode the wire body.

        Raises:
            SerializationError: If data holds values JSON cannot represent.
        """
        try:
            return self.model_dump_json(by_alias=True).encode("utf-8")
        except (PydanticSerializationError, ValueError, TypeError) as exc:
            raise SerializationError(exc) from exc
