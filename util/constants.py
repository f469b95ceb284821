from pathlib import Path

REPO_ROOT = Path(__file__).parent.parent

CONFIG_PATH = REPO_ROOT / "config" / "settings.yaml"
