"""Where each route's HTML lives under the output directory."""

from pathlib import Path


def route_to_output_file(route_path: str, output_dir: Path) -> Path:
    """
    Map a route to the file that serves it.

    "/" -> <output>/index.html, "/a/b/" -> <output>/a/b/index.html
    """
    if not route_path.startswith("/"):
        raise ValueError(f"route path must start with '/': {route_path!r}")
    if route_path == "/":
        return output_dir / "index.html"
    clean = route_path.strip("/")
    if any(segment in ("", ".", "..") for segment in clean.split("/")):
        raise ValueError(f"route path has an empty or relative segment: {route_path!r}")
    return output_dir / clean / "index.html"
