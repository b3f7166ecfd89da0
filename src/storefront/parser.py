"""Chat command parsing."""

from dataclasses import dataclass, field

COMMAND_PREFIX = "."


@dataclass(frozen=True)
class ParsedCommand:
    name: str
    args: list[str] = field(default_factory=list)
    raw_args: str = ""

    def arg(self, index: int, default: str | None = None) -> str | None:
        return self.args[index] if index < len(self.args) else default

    def rest(self, start: int) -> str:
        """Arguments from ``start`` onwards, joined back into free text."""
        return " ".join(self.args[start:])


def parse_command(text: str, prefix: str = COMMAND_PREFIX) -> ParsedCommand | None:
    """Split ``.name arg1 arg2`` into a ParsedCommand. Returns None for plain chat."""
    stripped = (text or "").strip()
    if not stripped.startswith(prefix) or len(stripped) == len(prefix):
        return None

    head, _, raw_args = stripped[len(prefix) :].partition(" ")
    name = head.strip().lower()
    if not name:
        return None
    raw_args = raw_args.strip()
    return ParsedCommand(name=name, args=raw_args.split(), raw_args=raw_args)
