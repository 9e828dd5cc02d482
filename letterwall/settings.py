import json
import os

BASE_DIR = os.path.dirname(os.path.abspath(__file__))


def resolve_path(filePath):
    """Relative paths resolve next to this package; None stays None."""
    if filePath is None or os.path.isabs(filePath):
        return filePath
    return os.path.join(BASE_DIR, filePath)


def load_settings(filePath='settings.json'):
    """Load JSON settings; relative paths resolve next to this package."""
    with open(resolve_path(filePath), 'r', encoding='utf-8') as f:
        settings = json.load(f)
    return settings
