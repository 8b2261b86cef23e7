"""Decode Claude project directory names and build record ids."""


def decode_project_dir(encoded: str) -> str:
    """Decode a Claude project directory name to a display path.

    -home-wiz-AI-LLM → home/wiz/AI/LLM

    The leading separator is dropped so the value matches the ``directory``
    label published by earlier exporter releases.
    """
    if not encoded:
        return ""
    # Hyphens inside path segments are ambiguous; every hyphen becomes a separator
    decoded = encoded.replace("-", "/")
    return decoded[1:] if decoded.startswith("/") else decoded


def make_record_id(project_id: str, file_name: str) -> str:
    """Stable conversation id: ``<project dir>/<record file name>``."""
    return f"{project_id}/{file_name}"
