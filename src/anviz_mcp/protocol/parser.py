"""Response decoding driven by the command catalog."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterator, Mapping

from ..errors import IncompleteResponse, UnknownCommand
from .catalog import CommandSpec, FieldSpec, RecordStream, get_spec


@dataclass
class DecodedResponse(Mapping[str, Any]):
    """Field name to value mapping for one response.

    Stream responses hold their records as a list of dicts under the
    stream's name (``records`` or ``schedules``).
    """

    command: int
    name: str
    fields: dict[str, Any] = field(default_factory=dict)
    raw: bytes = b""

    def __getitem__(self, key: str) -> Any:
        return self.fields[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self.fields)

    def __len__(self) -> int:
        return len(self.fields)

    def to_dict(self) -> dict[str, Any]:
        """JSON-serializable copy, with timestamps rendered as strings."""
        return {key: _jsonable(value) for key, value in self.fields.items()}

    def __repr__(self) -> str:
        return (
            f"DecodedResponse(command=0x{self.command:02X}, name={self.name!r}, "
            f"fields={self.fields!r})"
        )


def _jsonable(value: Any) -> Any:
    if isinstance(value, list):
        return [_jsonable(item) for item in value]
    if isinstance(value, dict):
        return {key: _jsonable(item) for key, item in value.items()}
    if isinstance(value, (int, str, bool, float)) or value is None:
        return value
    return str(value)


def _decode_fields(data: bytes, base: int, fields: tuple[FieldSpec, ...]) -> dict[str, Any]:
    return {spec.name: spec.decoder(data, base + spec.offset) for spec in fields}


def decode_records(data: bytes, stream: RecordStream) -> list[dict[str, Any]]:
    """Slice ``data`` into fixed-width records and decode each one.

    Records come back in buffer order. A partial trailing record is
    ignored.
    """
    records = []
    for i in range(stream.record_count(len(data))):
        start = stream.first_record_offset + i * stream.record_width
        record = data[start : start + stream.record_width]
        records.append(_decode_fields(record, 0, stream.fields))
    return records


def decode_with_spec(spec: CommandSpec, data: bytes) -> DecodedResponse:
    """Decode ``data`` according to an explicit command spec."""
    data = bytes(data)
    if len(data) < spec.min_length:
        raise IncompleteResponse(spec.command.value, len(data), spec.min_length)

    values = _decode_fields(data, 0, spec.fields)
    if spec.stream is not None:
        values[spec.stream.name] = decode_records(data, spec.stream)

    return DecodedResponse(
        command=spec.command.value,
        name=spec.name,
        fields=values,
        raw=data,
    )


def decode_response(command: int, data: bytes) -> DecodedResponse:
    """Decode a raw response frame for the command that was sent.

    Args:
        command: The request's command code.
        data: The complete response bytes, header included.

    Raises:
        UnknownCommand: If the command has no catalog entry.
        IncompleteResponse: If ``data`` is shorter than the command's
            declared minimum.
    """
    spec = get_spec(command)
    if spec is None:
        raise UnknownCommand(command)
    return decode_with_spec(spec, data)
