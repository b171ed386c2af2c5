"""SSH session setup."""

from .ssh_client import DEFAULT_SSH_PORT, get_ssh_client, load_private_key

__all__ = ['DEFAULT_SSH_PORT', 'get_ssh_client', 'load_private_key']
