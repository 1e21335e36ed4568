import logging

from pythonjsonlogger.json import JsonFormatter


def setup_json_logging(level: str = "INFO") -> None:
    """Send every record through one JSON formatted stream handler on the root logger."""
    root = logging.getLogger()
    root.setLevel(level.upper())
    for h in list(root.handlers):
        root.removeHandler(h)

    handler = logging.StreamHandler()
    handler.setFormatter(
        JsonFormatter("%(asctime)s %(levelname)s %(name)s %(message)s")
    )
    root.addHandler(handler)
