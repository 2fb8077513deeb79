from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("ryg-task")
except PackageNotFoundError:
    __version__ = "unknown"
