"""SSH client session setup."""

import io
import os
from typing import Optional

import paramiko
from log_config.logging_config import get_logger

logger = get_logger("RemoteFS.SSH")

DEFAULT_SSH_PORT = 22

_KEY_CLASSES = (paramiko.Ed25519Key, paramiko.ECDSAKey, paramiko.RSAKey)


def load_private_key(private_key: str, passphrase: Optional[str] = None) -> paramiko.PKey:
    """
    Parse an OpenSSH/PEM private key given as text.

    Raises:
        paramiko.PasswordRequiredException: If the key is encrypted and no passphrase was given
        paramiko.SSHException: If the key is not a supported type
    """
    last_error = None
    for key_class in _KEY_CLASSES:
        try:
            return key_class.from_private_key(io.StringIO(private_key), password=passphrase)
        except paramiko.PasswordRequiredException:
            raise
        except paramiko.SSHException as e:
            last_error = e
    raise paramiko.SSHException(f"Unsupported or invalid private key: {last_error}")


def get_ssh_client(host: str, port: Optional[int], username: str, password: Optional[str] = None,
                   private_key: Optional[str] = None, passphrase: Optional[str] = None,
                   timeout: Optional[float] = None) -> paramiko.SSHClient:
    """
    Create and return an authenticated SSH client connection.

    Exactly one authentication method is used: the password when given,
    otherwise the private key (key text or a path to a key file).

    Args:
        host: SSH server hostname
        port: SSH server port (22 when not given)
        username: SSH username
        password: SSH password
        private_key: Private key text, or path to a private key file
        passphrase: Passphrase of the private key
        timeout: TCP / banner / auth timeout in seconds

    Returns:
        Connected SSH client

    Raises:
        ValueError: If required parameters are missing
        Exception: If connection fails
    """
    if not host or not username:
        logger.error("Missing required SSH connection parameters: host or username")
        raise ValueError("Missing required SSH connection parameters: host and username")
    if not password and not private_key:
        logger.error("SSH connection requires a password or a private key")
        raise ValueError("SSH connection requires a password or a private key")

    port = port or DEFAULT_SSH_PORT
    auth = {"allow_agent": False, "look_for_keys": False}
    if password:
        auth["password"] = password
        method = "password"
    elif os.path.isfile(os.path.expanduser(private_key)):
        auth["key_filename"] = os.path.expanduser(private_key)
        auth["passphrase"] = passphrase
        method = "key file"
    else:
        auth["pkey"] = load_private_key(private_key, passphrase)
        method = "private key"

    logger.info(f"Connecting to SSH server: {username}@{host}:{port} ({method} authentication)")
    ssh = paramiko.SSHClient()
    ssh.load_system_host_keys()
    ssh.set_missing_host_key_policy(paramiko.AutoAddPolicy())
    try:
        ssh.connect(
            hostname=host,
            port=port,
            username=username,
            timeout=timeout,
            banner_timeout=timeout,
            auth_timeout=timeout,
            **auth
        )
    except Exception as e:
        logger.error(f"Failed to connect to SSH server {host}:{port}: {str(e)}")
        ssh.close()
        raise
    logger.info(f"Successfully connected to SSH server: {host}:{port}")
    return ssh
