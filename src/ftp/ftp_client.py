"""FTP client session setup."""

from ftplib import FTP
from typing import Optional

from log_config.logging_config import get_logger

logger = get_logger("RemoteFS.FTP")

DEFAULT_FTP_PORT = 21


def get_ftp_client(host: str, port: Optional[int], username: str, password: Optional[str],
                   timeout: Optional[float] = None) -> FTP:
    """
    Create and return a logged-in FTP session.

    Args:
        host: FTP server hostname
        port: FTP server port (21 when not given)
        username: FTP username, anonymous when blank
        password: FTP password
        timeout: Socket timeout in seconds, None blocks indefinitely

    Returns:
        Connected ftplib.FTP client in binary mode

    Raises:
        ValueError: If host is missing
        ftplib.all_errors: If connection or login fails
    """
    if not host:
        raise ValueError("Missing required FTP connection parameter: host")

    port = port or DEFAULT_FTP_PORT
    user = username or "anonymous"
    passwd = password or ("anonymous@" if user == "anonymous" else "")

    logger.info(f"Connecting to FTP server: {user}@{host}:{port}")
    ftp = FTP()
    try:
        ftp.connect(host, port, timeout=timeout)
        ftp.login(user, passwd)
        ftp.voidcmd("TYPE I")
    except Exception as e:
        logger.error(f"Failed to connect to FTP server {host}:{port}: {e}")
        ftp.close()
        raise
    logger.info(f"Successfully connected to FTP server: {host}:{port}")
    return ftp
