import os

DEFAULT_PORT = 8080
DEFAULT_NAME = "World"
DEFAULT_BUCKET = "cookndx-dev-testing-2021-02"
DEFAULT_STORAGE_TIMEOUT = 60.0

# 16 MiB cap on a single uploaded file.
MAX_UPLOAD_BYTES = 2 << 23

# Room for multipart boundaries and part headers around the file itself.
FORM_OVERHEAD_BYTES = 64 * 1024


def get_port() -> int:
    raw = (os.getenv("PORT") or "").strip()
    try:
        port = int(raw)
    except ValueError:
        return DEFAULT_PORT
    return port if port > 0 else DEFAULT_PORT


def get_greeting_name() -> str:
    return os.getenv("NAME") or DEFAULT_NAME


def get_bucket_name() -> str:
    return (os.getenv("BUCKET_NAME") or DEFAULT_BUCKET).strip()


def get_storage_timeout() -> float:
    """Seconds allowed for one upload call to Cloud Storage."""
    raw = (os.getenv("STORAGE_TIMEOUT_SECONDS") or "").strip()
    try:
        timeout = float(raw)
    except ValueError:
        return DEFAULT_STORAGE_TIMEOUT
    return timeout if timeout > 0 else DEFAULT_STORAGE_TIMEOUT
