"""Error taxonomy for the eventmark persistence and export layer."""


class EventmarkError(Exception):
    """Base class for all eventmark errors."""


class StorageInitError(EventmarkError):
    """Database directory, file, or migrations could not be prepared."""


class PersistenceError(EventmarkError):
    """A statement was rejected by the engine or affected an unexpected row count."""


class CategoryDecodeError(PersistenceError, ValueError):
    """A stored or supplied event category is not one of the known variants."""

    def __init__(self, value: object):
        self.value = value
        super().__init__(
            f"Invalid event category {value!r}. Expected one of: single, range"
        )


class NotFoundError(EventmarkError):
    """A lookup by identity matched zero rows."""

    def __init__(self, entity: str, identifier: object):
        self.entity = entity
        self.identifier = identifier
        super().__init__(f"{entity} with id {identifier} not found")


class ExportError(EventmarkError):
    """Base class for event export failures."""


class EmptyEventTypesError(ExportError):
    """No event types were supplied to map occurrences against."""


class UnknownEventTypeError(ExportError):
    """An occurrence references an event type outside the supplied set."""

    def __init__(self, event_type_id: int):
        self.event_type_id = event_type_id
        super().__init__(f"Event type {event_type_id} not found")


class InconsistentOccurrenceError(ExportError):
    """An occurrence's timestamps disagree with its event type's category."""


class EncodingError(ExportError):
    """A row could not be serialized to CSV text."""
