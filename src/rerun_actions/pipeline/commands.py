"""Parsing of rerun commands from comment bodies."""

from dataclasses import dataclass

# Shortest command token, "/test".
MIN_COMMAND_LENGTH = 5

RERUN_ALL_COMMANDS = frozenset({"retest", "rerun-all"})
RERUN_WORKFLOW_COMMANDS = frozenset({"test", "rerun-workflow"})


@dataclass(frozen=True)
class Command:
    """A requested rerun target.

    ``workflow`` is None for a rerun of every workflow.
    """

    workflow: str | None = None

    @property
    def rerun_all(self) -> bool:
        return self.workflow is None

    def __str__(self) -> str:
        return "RerunAll" if self.rerun_all else f"RerunWorkflow({self.workflow})"


RERUN_ALL = Command()


def rerun_workflow(name: str) -> Command:
    """Build a command targeting a single workflow by name."""
    return Command(workflow=name)


def _is_command_line(tokens: list[str]) -> bool:
    return bool(tokens) and len(tokens[0]) >= MIN_COMMAND_LENGTH and tokens[0].startswith("/")


def parse_commands(body: str) -> frozenset[Command]:
    """Parse a comment body into the set of commands it requests.

    Commands must open the comment. Blank lines are skipped; the first
    non-command line ends parsing, so a comment whose first non-blank line
    is not a command yields nothing.

    Args:
        body: Raw comment body

    Returns:
        Set of requested commands (possibly empty)
    """
    commands: set[Command] = set()

    for line in body.splitlines():
        tokens = line.split()
        if not tokens:
            continue
        if not _is_command_line(tokens):
            break

        name = tokens[0][1:]
        if name in RERUN_ALL_COMMANDS:
            commands.add(RERUN_ALL)
        elif name in RERUN_WORKFLOW_COMMANDS:
            if len(tokens) < 2:
                continue
            commands.add(rerun_workflow(tokens[1]))

    return frozenset(commands)
