def build_url(base_url: str, path: str) -> str:
    """Join a backend base URL and an endpoint path with exactly one slash."""
    base = base_url.rstrip("/")
    suffix = path.lstrip("/")
    if not suffix:
        return base
    return f"{base}/{suffix}"
