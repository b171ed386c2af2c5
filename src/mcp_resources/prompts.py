"""MCP workflow prompts."""


def edit_remote_file_workflow(remote_path: str) -> str:
    """
    A workflow prompt for safely editing one file on a remote host.

    Args:
        remote_path: Remote file to edit
    """
    return f"""Edit the remote file "{remote_path}":

1. If no connection_id is available yet, ask for the protocol (ftp, sftp or ssh), host, username and password or private key, then call connect
2. Call read_file to fetch the current content of "{remote_path}"
3. Write a backup copy with write_file to "{remote_path}.bak" before changing anything
4. Apply the requested changes and save them with write_file
5. Call read_file again and confirm the saved content matches what was intended
6. Call disconnect when finished"""


def deploy_file_workflow(local_path: str, remote_dir: str) -> str:
    """
    A workflow prompt for uploading a local file into a remote directory.

    Args:
        local_path: Local file to upload
        remote_dir: Remote directory receiving the file
    """
    return f"""Deploy "{local_path}" into "{remote_dir}":

1. Connect with connect if there is no active connection_id
2. Call list_directory on "{remote_dir}"; if it does not exist, create it with create_directory (parents are not created implicitly, create each missing level in order)
3. If a file with the same name already exists, rename it to "<name>.old" first
4. Call upload_file with local_path="{local_path}" and the remote path inside "{remote_dir}"
5. Call list_directory on "{remote_dir}" again and report the uploaded file's size and date
6. Call disconnect when finished"""
