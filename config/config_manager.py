import copy
import os
import yaml

DEFAULT_CONFIG = {
    "logging_level": "INFO",
    "log_dir": "~/.flashcull",
    "preview": {
        "workers": 4,
        "scan_limit_bytes": 6 * 1024 * 1024,
        "max_segment_distance": 5_000_000,
        "min_segment_size": 50_000,
        "heic_quality": 0.5,
        "cache_failures": True,
    },
    "triage": {
        "default_sort": "name_asc",
        "default_columns": 6,
    },
    "trash": {
        "dir_name": "_Trash",
    },
    "gui": {
        "background_color": "#0f0f0f",
        "panel_color": "#1a1a1a",
        "spacing": 8,
        "border_width": 2,
        "select_border_color": "#3b82f6",
        "keep_color": "#22c55e",
        "reject_color": "#ef4444",
        "window_width": 1200,
        "window_height": 800,
    },
    "hotkeys": {
        "next_image": {
            "sequence": "Right",
            "description": "Navigate to next image"
        },
        "previous_image": {
            "sequence": "Left",
            "description": "Navigate to previous image"
        },
        "mark_keep": {
            "sequence": "Up",
            "description": "Mark image as keep"
        },
        "mark_reject": {
            "sequence": "Down",
            "description": "Mark image as reject"
        },
        "mark_unreviewed": {
            "sequence": "Backspace",
            "description": "Reset image to unreviewed",
            "extra_sequences": ["0"]
        },
        "close_review": {
            "sequence": "Esc",
            "description": "Return to the grid"
        },
    },
    "ignore_patterns": ["._*"]  # glob patterns
}


def _default_config_path() -> str:
    xdg_config_home = os.environ.get("XDG_CONFIG_HOME", os.path.expanduser("~/.config"))
    return os.path.join(xdg_config_home, "flashcull", "config.yaml")


def _with_defaults(user_config: dict) -> dict:
    """A fresh copy of DEFAULT_CONFIG with *user_config* layered on top, table by table."""
    merged = copy.deepcopy(DEFAULT_CONFIG)
    pending = [(merged, user_config)]
    while pending:
        target, overrides = pending.pop()
        for key, value in overrides.items():
            if isinstance(target.get(key), dict) and isinstance(value, dict):
                pending.append((target[key], value))
            else:
                target[key] = value
    return merged


class ConfigManager:
    def __init__(self, config_path: str | None = None):
        self.config_path = config_path or _default_config_path()
        self.config = self.load_config()

    def load_config(self):
        user_config = self._read_user_config()
        if user_config is None:
            # First run: write the defaults out so they can be edited.
            self.save_config(DEFAULT_CONFIG)
            user_config = {}
        return _with_defaults(user_config)

    def _read_user_config(self) -> dict | None:
        """The YAML mapping at config_path, {} for an empty file, None if there is no file."""
        if not os.path.exists(self.config_path):
            return None
        with open(self.config_path, "r") as f:
            try:
                loaded = yaml.safe_load(f)
            except yaml.YAMLError as exc:
                raise ValueError(f"Malformed config at {self.config_path}") from exc
        if loaded is None:
            return {}
        if not isinstance(loaded, dict):
            raise ValueError(f"Config at {self.config_path} must be a mapping, "
                             f"not {type(loaded).__name__}")
        return loaded

    def save_config(self, config):
        os.makedirs(os.path.dirname(self.config_path), exist_ok=True)
        with open(self.config_path, "w") as f:
            yaml.dump(config, f, default_flow_style=False)

    def get(self, key, default=None):
        """Value at a dotted *key* such as ``preview.workers``; a None value counts as unset."""
        node = self.config
        for part in key.split("."):
            node = node.get(part) if isinstance(node, dict) else None
            if node is None:
                return default
        return node

    def set(self, key, value):
        """Store *value* at a dotted *key*, creating tables on the way, and save the file."""
        *tables, leaf = key.split(".")
        node = self.config
        for name in tables:
            if not isinstance(node.get(name), dict):
                node[name] = {}
            node = node[name]
        node[leaf] = value
        self.save_config(self.config)

    @property
    def logging_level(self):
        return self.get("logging_level", "INFO")
