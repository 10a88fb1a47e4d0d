"""Protocol layer: framing, CRC, command builders, and response decoding."""

from .framing import Frame, build_frame, parse_frame
from .commands import Command, build_command
from .catalog import CATALOG, CommandSpec, get_spec
from .parser import DecodedResponse, decode_response
