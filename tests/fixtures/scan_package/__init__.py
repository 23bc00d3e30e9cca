"""Package scanned with and without submodule discovery."""

from commandstack import command_handler
from tests.fixtures.commands import TestCommand


class RootHandlers:
    @command_handler
    def handle(self, command: TestCommand) -> None:
        pass
