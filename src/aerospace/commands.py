"""
AeroSpace command encoding and response decoding.

Requests are single-line JSON objects:

    {"command": "", "args": ["workspace", "next"], "stdin": ""}

Responses carry the CLI-style outcome of the command:

    {"exitCode": 0, "stdout": "...", "stderr": "..."}
"""
import json
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

from .errors import DecodeFault

WORKSPACE = "workspace"
LIST_WORKSPACES = "list-workspaces"
WRAP_AROUND_FLAG = "--wrap-around"


@dataclass(frozen=True)
class WorkspaceListing:
    """Raw `list-workspaces` output, one workspace name per line."""
    text: str

    @property
    def names(self) -> List[str]:
        return self.text.splitlines()

    @classmethod
    def from_result(cls, result: "CommandResult") -> "WorkspaceListing":
        return cls(result.stdout)


@dataclass(frozen=True)
class SwitchDirectional:
    """Switch relative to the focused workspace (`next` / `prev`)."""
    target: str


@dataclass(frozen=True)
class SwitchNamed:
    """
    Switch to `name`, optionally wrapping around.

    When a listing is attached it is sent as stdin, so the daemon can
    resolve next/prev against it without querying again.
    """
    name: str
    wrap: bool = False
    listing: Optional[WorkspaceListing] = None


@dataclass(frozen=True)
class ListWorkspaces:
    """List the workspaces of a monitor."""
    monitor: str = "focused"
    exclude_empty: bool = True


WorkspaceCommand = Union[SwitchDirectional, SwitchNamed, ListWorkspaces]


@dataclass(frozen=True)
class CommandResult:
    """Outcome of a command the daemon accepted and ran."""
    ok: bool
    message: Optional[str] = None
    stdout: str = ""
    exit_code: int = 0

    @classmethod
    def success(cls, stdout: str = "") -> "CommandResult":
        return cls(ok=True, stdout=stdout)

    @classmethod
    def failed(cls, message: str, exit_code: int = 1) -> "CommandResult":
        return cls(ok=False, message=message, exit_code=exit_code)


def build_switch(target: str, listing: Optional[WorkspaceListing] = None) -> WorkspaceCommand:
    """
    Build the switch command for a swipe target.

    With a listing the switch wraps around using it as context, otherwise
    a plain directional switch is sent.
    """
    if listing is None:
        return SwitchDirectional(target)
    return SwitchNamed(target, wrap=True, listing=listing)


def command_args(command: WorkspaceCommand) -> List[str]:
    """Program-style argv for a command."""
    if isinstance(command, SwitchDirectional):
        return [WORKSPACE, command.target]

    if isinstance(command, SwitchNamed):
        args = [WORKSPACE, command.name]
        if command.wrap:
            args.append(WRAP_AROUND_FLAG)
        return args

    if isinstance(command, ListWorkspaces):
        args = [LIST_WORKSPACES, "--monitor", command.monitor]
        if command.exclude_empty:
            args.extend(["--empty", "no"])
        return args

    raise TypeError(f"Unsupported command: {command!r}")


def command_stdin(command: WorkspaceCommand) -> str:
    if isinstance(command, SwitchNamed) and command.listing is not None:
        return command.listing.text
    return ""


def encode_request(command: WorkspaceCommand) -> bytes:
    """Serialize a command as one newline-terminated JSON request."""
    payload = {
        "command": "",
        "args": command_args(command),
        "stdin": command_stdin(command),
    }
    return (json.dumps(payload, separators=(",", ":")) + "\n").encode("utf-8")


def decode_response(raw: bytes) -> Dict[str, Any]:
    """Parse a raw response into a JSON object."""
    try:
        payload = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as e:
        raise DecodeFault(f"Failed to decode JSON response: {e}") from e

    if not isinstance(payload, dict):
        raise DecodeFault("Failed to decode JSON response: expected an object")
    return payload


def decode_result(payload: Dict[str, Any], require_stdout: bool = False) -> CommandResult:
    """
    Map a response object to a CommandResult.

    Args:
        payload: Decoded response object
        require_stdout: Successful responses must carry a stdout string
                        (listing commands)

    Raises:
        DecodeFault: exitCode is missing, or a field the outcome depends
                     on (stderr on failure, stdout when required) is not a
                     string.
    """
    exit_code = payload.get("exitCode")
    if not isinstance(exit_code, int) or isinstance(exit_code, bool):
        raise DecodeFault("Response does not contain a valid exitCode")

    if exit_code == 0:
        stdout = payload.get("stdout")
        if require_stdout and not isinstance(stdout, str):
            raise DecodeFault("Response does not contain valid stdout")
        return CommandResult.success(stdout if isinstance(stdout, str) else "")

    stderr = payload.get("stderr")
    if not isinstance(stderr, str):
        raise DecodeFault("Response does not contain valid stderr")
    return CommandResult.failed(stderr, exit_code)
