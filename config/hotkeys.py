# config/hotkeys.py

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List


class ReviewAction(Enum):
    """Actions available while the single-image review view is open."""
    NEXT_IMAGE = "next_image"
    PREVIOUS_IMAGE = "previous_image"
    MARK_KEEP = "mark_keep"
    MARK_REJECT = "mark_reject"
    MARK_UNREVIEWED = "mark_unreviewed"
    CLOSE_REVIEW = "close_review"


@dataclass
class HotkeyDefinition:
    """One review action and every key sequence bound to it."""
    action_name: str
    sequences: List[str]  # primary binding first
    description: str

    @classmethod
    def from_config(cls, action_name: str, config) -> "HotkeyDefinition":
        """Accept either a bare key string or a table with sequence, extra_sequences and description."""
        if isinstance(config, dict):
            primary = [config["sequence"]] if "sequence" in config else []
            keys = primary + list(config.get("extra_sequences", []))
            return cls(action_name, [str(k) for k in keys], config.get("description", ""))
        if isinstance(config, str):
            return cls(action_name, [config], "")
        logging.warning(f"Hotkey '{action_name}' has no usable key sequence: {config!r}")
        return cls(action_name, [], "")


def build_key_map(hotkeys_config: dict) -> Dict[str, ReviewAction]:
    """
    Map key sequence text (as produced by ``QKeySequence.toString()``) to the
    review action it triggers.  Unknown action names are skipped with a
    warning; a sequence bound twice keeps its first binding.
    """
    key_map: Dict[str, ReviewAction] = {}
    for action_name, config in (hotkeys_config or {}).items():
        try:
            action = ReviewAction(action_name)
        except ValueError:
            logging.warning(f"Unknown hotkey action '{action_name}' in config; ignoring")
            continue
        definition = HotkeyDefinition.from_config(action_name, config)
        for sequence in definition.sequences:
            if sequence in key_map:
                logging.warning(f"Key '{sequence}' already bound to {key_map[sequence].value}; "
                                f"not rebinding to {action.value}")
                continue
            key_map[sequence] = action
    return key_map
