from __future__ import annotations

def norm_path(p: str) -> str:
    """Normalize a filesystem path into an archive member name.

    Files added from disk become relative member names, and ``--extract``
    joins the normalized name onto its output directory, so an entry can
    never be written to an absolute path or climb out of that directory.

    Rules:
    - Convert backslashes to slashes
    - Strip leading/trailing slashes
    - Remove empty and '.' segments
    - Reject '..' segments and names that end up empty
    """
    p = p.replace("\\", "/").strip("/")
    parts = [q for q in p.split("/") if q not in ("", ".")]
    for q in parts:
        if q == "..":
            raise ValueError("Path may not contain '..'")
    if not parts:
        raise ValueError("Path is empty after normalization")
    return "/".join(parts)
