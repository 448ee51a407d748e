"""
AeroSpace IPC client over the per-user Unix domain socket.
"""
import json
import logging
import os
import pwd
import socket
from typing import Optional, Tuple

from .commands import (
    CommandResult,
    ListWorkspaces,
    WorkspaceCommand,
    WorkspaceListing,
    build_switch,
    decode_response,
    decode_result,
    encode_request,
)
from .errors import AddressResolutionError, DecodeFault, TransportFault

logger = logging.getLogger(__name__)

DEFAULT_MAX_BUFFER_SIZE = 2048
DEFAULT_MAX_RESPONSE_SIZE = 65536
SOCKET_PATH_TEMPLATE = "/tmp/bobko.aerospace-{user}.sock"


def _lookup_user(name: str) -> Optional[pwd.struct_passwd]:
    try:
        return pwd.getpwnam(name)
    except KeyError:
        return None


def resolve_username() -> str:
    """
    Name of the user whose AeroSpace instance we talk to.

    When running as root, the user who invoked sudo (or $USER, if it is not
    root) is preferred, because AeroSpace runs in the desktop session of
    that user.
    """
    uid = os.getuid()
    try:
        pw = pwd.getpwuid(uid)
    except KeyError:
        pw = None

    if uid == 0:
        sudo_user = os.environ.get("SUDO_USER")
        if sudo_user:
            pw = _lookup_user(sudo_user) or pw
        else:
            user_env = os.environ.get("USER")
            if user_env and user_env != "root":
                pw = _lookup_user(user_env) or pw

    if pw is None:
        raise AddressResolutionError(
            "Unable to determine user information for default socket path"
        )
    return pw.pw_name


def default_socket_path() -> str:
    return SOCKET_PATH_TEMPLATE.format(user=resolve_username())


class AerospaceClient:
    """
    Request/response client for the AeroSpace server socket.

    Usage:
        with AerospaceClient() as client:
            result = client.switch("next", wrap_around=True)
            if not result.ok:
                print(result.message)

    Transport problems raise TransportFault (DecodeFault for malformed
    replies); a command the daemon ran but rejected comes back as a failed
    CommandResult. Not thread-safe: callers serialize access.
    """

    def __init__(
        self,
        socket_path: Optional[str] = None,
        buffer_size: int = DEFAULT_MAX_BUFFER_SIZE,
        max_response_size: int = DEFAULT_MAX_RESPONSE_SIZE,
    ):
        """
        Initialize client. Does not connect.

        Args:
            socket_path: Server socket, or None for the per-user default
            buffer_size: Bytes requested per read
            max_response_size: Upper bound on one response

        Raises:
            AddressResolutionError: No socket_path given and the user
                                    could not be resolved
        """
        self._socket_path = socket_path or default_socket_path()
        self._buffer_size = buffer_size
        self._max_response_size = max_response_size
        self._sock: Optional[socket.socket] = None

    @property
    def socket_path(self) -> str:
        return self._socket_path

    @property
    def connected(self) -> bool:
        return self._sock is not None

    def connect(self) -> "AerospaceClient":
        """
        Open the connection. Does nothing if already connected.

        Raises:
            TransportFault: Socket creation or connect failed
        """
        if self._sock is not None:
            return self

        try:
            sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        except OSError as e:
            raise TransportFault(f"Failed to create Unix domain socket: {e}") from e

        try:
            sock.connect(self._socket_path)
        except OSError as e:
            sock.close()
            raise TransportFault(
                f"Failed to connect to socket at {self._socket_path}: {e}"
            ) from e

        self._sock = sock
        logger.debug(f"Connected to {self._socket_path}")
        return self

    def send(self, command: WorkspaceCommand) -> int:
        """
        Write one request. Short writes are continued until all bytes are
        sent.

        Returns:
            Number of bytes written
        """
        if self._sock is None:
            raise TransportFault("Socket is not connected")

        data = encode_request(command)
        try:
            self._sock.sendall(data)
        except OSError as e:
            raise TransportFault(f"Failed to send data through socket: {e}") from e
        return len(data)

    def receive(self, max_bytes: Optional[int] = None) -> bytes:
        """Single read of at most `max_bytes` (default: buffer size)."""
        if self._sock is None:
            raise TransportFault("Socket is not connected")

        try:
            return self._sock.recv(max_bytes or self._buffer_size)
        except OSError as e:
            raise TransportFault(f"Failed to receive data from socket: {e}") from e

    def _read_response(self) -> bytes:
        """
        Read one response.

        Reads until the data is newline terminated, parses as complete
        JSON, or the server closes the connection.
        """
        buf = bytearray()
        while True:
            chunk = self.receive(self._buffer_size)
            if not chunk:
                if not buf:
                    raise TransportFault("Connection closed by AeroSpace server")
                break

            buf += chunk
            if len(buf) > self._max_response_size:
                raise DecodeFault(
                    f"Response exceeds {self._max_response_size} bytes"
                )
            if buf.endswith(b"\n") or _is_complete_json(buf):
                break
        return bytes(buf)

    def request(self, command: WorkspaceCommand) -> CommandResult:
        """
        Send a command and decode its result.

        Connects first if needed. On any transport or decode fault the
        connection is closed so the next request starts on a fresh one.
        """
        try:
            self.connect()
            self.send(command)
            payload = decode_response(self._read_response())
            return decode_result(
                payload, require_stdout=isinstance(command, ListWorkspaces)
            )
        except TransportFault:
            self.close()
            raise

    def list_workspaces(
        self, exclude_empty: bool = True
    ) -> Tuple[CommandResult, Optional[WorkspaceListing]]:
        """Workspaces on the focused monitor."""
        result = self.request(ListWorkspaces(exclude_empty=exclude_empty))
        if not result.ok:
            return result, None
        return result, WorkspaceListing.from_result(result)

    def switch(self, target: str, wrap_around: bool, exclude_empty: bool = True) -> CommandResult:
        """
        Switch workspace towards `target` (`next` / `prev`).

        With wrap_around the current listing is fetched first and sent
        along with the switch.
        """
        if not wrap_around:
            return self.request(build_switch(target))

        result, listing = self.list_workspaces(exclude_empty)
        if listing is None:
            logger.error("Unable to retrieve workspace list.")
            return result
        return self.request(build_switch(target, listing))

    def close(self) -> None:
        """Close the connection. Safe to call more than once."""
        if self._sock is None:
            return
        sock, self._sock = self._sock, None
        try:
            sock.close()
        except OSError as e:
            logger.warning(f"Failed to close socket connection: {e}")

    def __enter__(self):
        return self.connect()

    def __exit__(self, *args):
        self.close()


def _is_complete_json(data: bytes) -> bool:
    try:
        json.loads(data.decode("utf-8"))
    except ValueError:
        return False
    return True
