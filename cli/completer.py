"""Custom completer for the LAN drop CLI with local file autocompletion."""

from pathlib import Path
from typing import Iterable

from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.document import Document

from cli.constants import COMMANDS


class DropCompleter(Completer):
    """
    Custom completer that provides:
    - Command name completion for the first token
    - Local file path completion for the 'upload' command
    """

    def __init__(self, base_dir: Path | None = None):
        self.base_dir = base_dir

    def get_completions(
        self, document: Document, complete_event
    ) -> Iterable[Completion]:
        """
        Generate completions based on cursor position and context.

        For the first token, completes command names.
        For 'upload' arguments, completes files and directories relative to the base directory.
        """
        text = document.text_before_cursor
        tokens = text.split()

        is_typing_new_token = text.endswith(" ") or not tokens

        if not tokens or (len(tokens) == 1 and not is_typing_new_token):
            yield from self._complete_commands(tokens[0] if tokens else "")
            return

        command = tokens[0].lower()
        if command != "upload":
            return

        current_word = "" if is_typing_new_token else tokens[-1]
        already_typed = set(tokens[1:])
        if not is_typing_new_token:
            already_typed.discard(current_word)

        yield from self._complete_local_paths(current_word, already_typed)

    def _complete_commands(self, partial: str) -> Iterable[Completion]:
        """Complete command names matching the partial input."""
        partial_lower = partial.lower()
        for cmd in COMMANDS:
            if cmd.startswith(partial_lower):
                yield Completion(cmd, start_position=-len(partial))

    def _complete_local_paths(
        self, partial: str, exclude: set
    ) -> Iterable[Completion]:
        """
        Complete file paths below the directory part of the partial input.

        Directories complete with a trailing slash; hidden entries are shown
        only once the partial name starts with a dot.
        """
        base = self.base_dir or Path.cwd()
        dir_part, _, name_part = partial.rpartition("/")
        search_dir = base / dir_part if dir_part else base
        prefix = f"{dir_part}/" if dir_part else ""

        if not search_dir.is_dir():
            return

        candidates = []
        for item in search_dir.iterdir():
            if item.name.startswith(".") and not name_part.startswith("."):
                continue
            if not item.name.startswith(name_part):
                continue
            if item.is_dir():
                candidates.append(f"{prefix}{item.name}/")
            elif item.is_file():
                rel_path = f"{prefix}{item.name}"
                if rel_path not in exclude:
                    candidates.append(rel_path)

        for candidate in sorted(candidates):
            yield Completion(candidate, start_position=-len(partial))
