"""
AeroSpace IPC Module

JSON request/response client for the AeroSpace window manager socket.
"""
from .client import AerospaceClient, default_socket_path, resolve_username
from .commands import (
    CommandResult,
    ListWorkspaces,
    SwitchDirectional,
    SwitchNamed,
    WorkspaceCommand,
    WorkspaceListing,
    build_switch,
    decode_response,
    decode_result,
    encode_request,
)
from .errors import AerospaceError, AddressResolutionError, DecodeFault, TransportFault

__all__ = [
    'AerospaceClient',
    'default_socket_path',
    'resolve_username',
    'CommandResult',
    'ListWorkspaces',
    'SwitchDirectional',
    'SwitchNamed',
    'WorkspaceCommand',
    'WorkspaceListing',
    'build_switch',
    'decode_response',
    'decode_result',
    'encode_request',
    'AerospaceError',
    'AddressResolutionError',
    'DecodeFault',
    'TransportFault',
]
