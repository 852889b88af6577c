from .resolver import find_version, resolve_version

__all__ = ["find_version", "resolve_version"]
