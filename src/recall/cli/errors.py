"""Rich error messages for the recall CLI.

Every error shown to the user states what went wrong and the exact action
that fixes it.
"""

from __future__ import annotations


def err_no_db(db_path: str) -> str:
    """No index database at *db_path*."""
    return (
        f"[red]Error:[/] No index found at '{db_path}'.\n"
        "  Run:  recall index"
    )


def err_no_sessions_dir(sessions_path: str) -> str:
    """Sessions directory does not exist."""
    return (
        f"[red]Error:[/] Sessions directory not found: '{sessions_path}'.\n"
        "  Pass --sessions PATH or set RECALL_SESSIONS_PATH."
    )


def err_embedding(message: str) -> str:
    """Embedding call failed."""
    return (
        f"[red]Error:[/] {message}\n"
        "  Check the embedding model in recall.yaml and that its API key is exported."
    )


def err_dimension_mismatch(message: str) -> str:
    """Existing vec table was built for a different embedding width."""
    return (
        f"[red]Error:[/] {message}\n"
        "  Point --db at a new file, or restore the previous embedding model."
    )


def err_config(message: str) -> str:
    return f"[red]Config error:[/] {message}"


def err_unknown_chunk_type(chunk_type: str, valid: tuple[str, ...]) -> str:
    return (
        f"[red]Error:[/] Unknown chunk type '{chunk_type}'.\n"
        f"  Use one of: {', '.join(valid)}"
    )


def err_session_not_found(session_id: str) -> str:
    return (
        f"[yellow]Session not found:[/] '{session_id}' is not in the index.\n"
        "  Run:  recall status  to see indexed sessions."
    )
