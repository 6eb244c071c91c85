"""Build appliance command lines and run them through a transport.

The executor is the only place that sends commands. It classifies the
result, raises CommandError on failure, parses output of read commands
and writes an audit record for every command that changes the filer.
"""
import dataclasses
import logging
from typing import Any, Optional

from ..errors import CommandError
from ..parsing import Record, parse
from ..transport.base import CommandResult, Transport
from ..utils.audit_log import ChangeTracker
from ..utils.logging_config import PerfStats
from .catalog import ArgKind, CommandSpec, get_command

logger = logging.getLogger(__name__)


def format_disks(disks) -> list[str]:
    """Render a disk list as -d groups.

    A flat list is one disk set; a list of lists is one set per plex.
        ["0a.16", "0a.17"]              -> -d 0a.16 0a.17
        [["0a.16"], ["0b.16"]]          -> -d 0a.16 -d 0b.16
    """
    if not disks:
        return []
    if all(isinstance(d, (list, tuple)) for d in disks):
        groups = [list(group) for group in disks if group]
    elif any(isinstance(d, (list, tuple)) for d in disks):
        raise ValueError(f"Disk list mixes names and disk sets: {disks!r}")
    else:
        groups = [list(disks)]

    words: list[str] = []
    for group in groups:
        words.append("-d")
        words.extend(str(d) for d in group)
    return words


def quote_word(value: Any) -> str:
    if isinstance(value, (list, tuple)):
        value = ",".join(str(v) for v in value)
    text = str(value)
    if not text or any(c.isspace() for c in text):
        return '"' + text.replace('"', '\\"') + '"'
    return text


def _as_mapping(spec: CommandSpec, args: Any) -> dict[str, Any]:
    if args is None:
        return {}
    if dataclasses.is_dataclass(args):
        # Option structs may carry settings applied by follow-up commands
        return dataclasses.asdict(args) | {"path": getattr(args, "path", None)}
    known = {arg.field for arg in spec.args} | {arg.suffix_field for arg in spec.args if arg.suffix_field}
    unknown = sorted(set(args) - known)
    if unknown:
        raise ValueError(f"Unknown arguments for {spec.kind} {spec.verb}: {', '.join(unknown)}")
    return dict(args)


class CommandExecutor:
    """Runs catalog commands for one filer."""

    def __init__(self, transport: Transport, tracker: Optional[ChangeTracker] = None):
        self.transport = transport
        self.tracker = tracker if tracker is not None else ChangeTracker(transport.filer_id)
        self.stats = PerfStats()

    @property
    def filer_id(self) -> str:
        return self.transport.filer_id

    def build(self, kind: str, verb: str, args: Any = None) -> str:
        """Render the command line for (kind, verb) with the given arguments."""
        spec = get_command(kind, verb)
        values = _as_mapping(spec, args)
        words = list(spec.words)

        for arg in spec.args:
            value = values.get(arg.field)
            if arg.kind is ArgKind.SWITCH:
                if value:
                    words.append(arg.flag)
            elif arg.kind is ArgKind.VALUE:
                if value is not None:
                    words.extend([arg.flag, quote_word(value)])
            elif arg.kind is ArgKind.DISKS:
                words.extend(format_disks(value))
            else:
                if value is None:
                    continue
                if arg.bool_words is not None:
                    words.append(arg.bool_words[0] if value else arg.bool_words[1])
                    continue
                word = quote_word(value)
                suffix = values.get(arg.suffix_field) if arg.suffix_field else None
                if suffix is not None and suffix not in ("", [], ()):
                    word = f"{word}{arg.suffix_sep}{quote_word(suffix)}"
                words.append(word)

        return " ".join(words)

    def run(
        self,
        kind: str,
        verb: str,
        args: Any = None,
        before_state: Optional[dict] = None,
        after_state: Optional[dict] = None,
    ) -> list[Record]:
        """Run a catalog command; return parsed records for read commands.

        Raises:
            CommandError: the filer rejected the command
            TransportError: the filer could not be reached
            ParseError: the output of a read command was unreadable
        """
        spec = get_command(kind, verb)
        command = self.build(kind, verb, args)
        parameters = {k: v for k, v in _as_mapping(spec, args).items() if v is not None}

        result = self.execute(
            command,
            operation=spec.operation,
            parameters=parameters,
            mutates=spec.mutates,
            before_state=before_state,
            after_state=after_state,
        )
        if spec.parse is None:
            return []
        return parse(spec.parse, result.output)

    def execute(
        self,
        command: str,
        operation: Optional[str] = None,
        parameters: Optional[dict] = None,
        mutates: bool = True,
        before_state: Optional[dict] = None,
        after_state: Optional[dict] = None,
        dry_run: bool = False,
    ) -> Optional[CommandResult]:
        """Send one command line and classify the result.

        Mutating commands are audited whether they succeed or fail; a dry
        run is audited without being sent and returns None.
        """
        operation = operation or command.split(" ", 1)[0]

        if dry_run:
            logger.info(f"[{self.filer_id}] dry run: {command}")
            self.tracker.log_change(
                operation, command, parameters or {}, success=True, dry_run=True,
                before_state=before_state, after_state=after_state,
            )
            return None

        logger.debug(f"[{self.filer_id}] {command}")
        result = self.transport.execute(command)
        self.stats.record(operation, result.elapsed * 1000)

        error = result.error
        if mutates:
            self.tracker.log_change(
                operation,
                command,
                parameters or {},
                success=error is None,
                output=result.output,
                error=error,
                before_state=before_state,
                after_state=after_state if error is None else None,
            )

        if error is not None:
            logger.warning(f"[{self.filer_id}] {command!r} failed: {error}")
            raise CommandError(command, result.output, status=result.status, message=error)

        return result
