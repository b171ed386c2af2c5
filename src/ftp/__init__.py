"""FTP session setup and listing parsers."""

from .ftp_client import DEFAULT_FTP_PORT, get_ftp_client
from .listing import entry_from_facts, parse_list_line, parse_list_output

__all__ = [
    'DEFAULT_FTP_PORT',
    'get_ftp_client',
    'entry_from_facts',
    'parse_list_line',
    'parse_list_output',
]
