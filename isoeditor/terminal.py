"""Command console that edits a scene through short text commands."""

from __future__ import annotations

import re
import shlex
from dataclasses import dataclass
from typing import Callable, NamedTuple, Optional

from .gltf import GltfError
from .scene import Scene

MAX_COLOR_VALUE = 255
MIN_COLOR_VALUE = 0

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


@dataclass(frozen=True)
class Message:
    """One line (or block) of console output."""

    value: str
    color_beg: int = 0
    color_end: int = 0


class _Command(NamedTuple):
    description: str
    handler: Callable[[list[str]], None]


def _atoi(text: str) -> int:
    """Leading integer of ``text``, or 0 when it does not start with one."""
    match = _LEADING_INT.match(text)
    return int(match.group(1)) if match else 0


class Terminal:
    """Parses command lines, runs them against a scene and collects messages."""

    def __init__(self, scene: Optional[Scene] = None) -> None:
        self.scene = scene
        self.messages: list[Message] = []
        self.commands: dict[str, _Command] = {
            "clear": _Command("clear the screen", lambda _args: self.clear()),
            "echo": _Command("echoes your text", self.echo),
            "addobject": _Command("adds object to scene", self.addobject),
            "rmobject": _Command("removes object from scene", self.rmobject),
            "bgcolor": _Command("change color of renderer background", self.bgcolor),
            "alias": _Command("adds path alias", self.alias),
        }

    def _say(self, text: str) -> None:
        self.messages.append(Message(text))

    def _require_scene(self) -> Scene:
        if self.scene is None:
            raise RuntimeError("no scene is attached to the terminal")
        return self.scene

    def execute(self, line: str) -> list[Message]:
        """Run one command line; returns the messages it produced."""
        try:
            parts = shlex.split(line)
        except ValueError:
            parts = line.split()
        if not parts:
            return []
        start = len(self.messages)
        name, *args = parts
        command = self.commands.get(name)
        if command is None:
            self._say(f"Unknown command: {name}")
        else:
            command.handler(args)
        return self.messages[start:]

    def clear(self) -> None:
        """Remove every message from the console."""
        self.messages.clear()

    def echo(self, args: list[str]) -> None:
        if not args:
            return
        self._say(" ".join(args))

    def addobject(self, args: list[str]) -> None:
        if len(args) < 2:
            self._say("Syntax Error! \nUsage: addobject <id/name> <path_to_glb>")
            return
        object_id, model_path = args[0], args[1]
        if self.scene is None:
            self._say("Failed to add object!")
            return
        try:
            self.scene.add_object(object_id, model_path)
        except (ValueError, KeyError, OSError, GltfError):
            self._say("Failed to add object!")
        else:
            self._say("Object added succesfully!")

    def rmobject(self, args: list[str]) -> None:
        if not args:
            self._say("Syntax Error! \nUsage: rmobject <id/name>")
            return
        if self.scene is None:
            self._say("Failed to remove object!")
            return
        try:
            self.scene.remove_object(args[0])
        except KeyError:
            self._say("Failed to remove object!")
        else:
            self._say("Object removed succesfully!")

    def bgcolor(self, args: list[str]) -> None:
        if len(args) < 3:
            self._say("Syntax Error! \nUsage: bgcolor <r> <g> <b>")
            return
        r, g, b = (_atoi(value) for value in args[:3])
        if max(r, g, b) > MAX_COLOR_VALUE:
            self._say("Syntax Error! \nMaximal value is 255!")
        elif min(r, g, b) < MIN_COLOR_VALUE:
            self._say("Syntax Error! \nMinimal value is 0!")
        else:
            self._require_scene().set_bg_color(r, g, b)
            self._say("")

    def alias(self, args: list[str]) -> None:
        if len(args) < 2:
            self._say("Syntax Error! \nUsage: alias <key> <value>")
            return
        self._require_scene().add_path_alias(args[0], args[1])
        self._say("Alias added succesfully!")