"""Registry of top-level commands and command-path resolution."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass, field

from cmdtree.core.command import Command
from cmdtree.exceptions import DuplicateCommandError


@dataclass(frozen=True, slots=True)
class ResolveResult:
    """Outcome of :meth:`CommandRegistry.resolve`.

    An empty ``resolved_path`` means nothing matched; a non-empty
    ``remaining_path`` next to a command means trailing unknown segments.
    """

    command: Command | None
    resolved_path: list[str] = field(default_factory=list)
    remaining_path: list[str] = field(default_factory=list)


class CommandRegistry:
    """Top-level name → :class:`Command` mapping.

    Populated once at application start-up and only read afterwards.
    """

    def __init__(self) -> None:
        self._commands: dict[str, Command] = {}
        self._aliases: dict[str, str] = {}

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(self, command: Command) -> None:
        """Validate *command* and add it.

        Nothing is added when any check fails.

        Raises
        ------
        DuplicateCommandError
            On duplicate siblings anywhere in the tree, or when the name
            or one of the aliases is already taken.
        """
        command.validate()

        if command.name in self._commands or command.name in self._aliases:
            raise DuplicateCommandError(f"Command '{command.name}' is already registered")

        seen: set[str] = set()
        for alias in command.aliases:
            if (
                alias in self._aliases
                or alias in self._commands
                or alias == command.name
                or alias in seen
            ):
                raise DuplicateCommandError(
                    f"Alias '{alias}' conflicts with existing command or alias",
                )
            seen.add(alias)

        self._commands[command.name] = command
        for alias in command.aliases:
            self._aliases[alias] = command.name

    def register_all(self, commands: Iterable[Command]) -> None:
        for command in commands:
            self.register(command)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get(self, name: str) -> Command | None:
        """Return the command registered under *name* or one of its aliases."""
        command = self._commands.get(name)
        if command is not None:
            return command
        target = self._aliases.get(name)
        return self._commands.get(target) if target is not None else None

    def has(self, name: str) -> bool:
        return name in self._commands or name in self._aliases

    def list(self) -> list[Command]:
        return list(self._commands.values())

    def names(self) -> list[str]:
        return list(self._commands)

    def clear(self) -> None:
        self._commands.clear()
        self._aliases.clear()

    def __len__(self) -> int:
        return len(self._commands)

    def __iter__(self) -> Iterator[Command]:
        return iter(self.list())

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def resolve(self, path: Sequence[str]) -> ResolveResult:
        """Walk *path* down the command tree as far as it matches.

        Examples
        --------
        With ``parent`` holding a ``sub`` command::

            resolve(["parent", "sub"])      # sub, ["parent", "sub"], []
            resolve(["parent", "unknown"])  # parent, ["parent"], ["unknown"]
            resolve(["nope"])               # None, [], ["nope"]
        """
        if not path:
            return ResolveResult(command=None)

        first, *rest = path
        current = self.get(first)
        if current is None:
            return ResolveResult(command=None, remaining_path=list(path))

        resolved: list[str] = [first]
        remaining: list[str] = list(rest)
        while remaining:
            sub_command = current.get_sub_command(remaining[0])
            if sub_command is None:
                break
            current = sub_command
            resolved.append(remaining.pop(0))

        return ResolveResult(command=current, resolved_path=resolved, remaining_path=remaining)
