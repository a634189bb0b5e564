"""
used to load the system prompt presets (prompts/*.txt) offered to callers
"""
from pathlib import Path
from typing import List, Optional

PROMPTS_DIR = Path(__file__).resolve().parents[1] / "prompts"

PRESETS = ("default", "thinking", "vue+quasar")
# preset names that aren't safe file names
_FILES = {"vue+quasar": "vue_quasar.txt"}
CUSTOM = "custom"


def load_system_prompt(name: str = "default") -> str:
    if name not in PRESETS:
        raise KeyError(f"Unknown system prompt preset: {name}")
    p = PROMPTS_DIR / _FILES.get(name, f"{name}.txt")
    return p.read_text(encoding="utf-8").strip()


def list_presets() -> List[str]:
    return [*PRESETS, CUSTOM]


def resolve_system_prompt(preset: Optional[str], custom: Optional[str] = None) -> Optional[str]:
    """
    Custom text wins when given (with no preset or preset "custom");
    a known preset returns its text; anything else returns None so the
    provider's own default applies.
    """
    custom = (custom or "").strip() or None
    if preset in (None, "", CUSTOM):
        return custom
    if preset in PRESETS:
        return load_system_prompt(preset)
    return None


FALLBACK_SYSTEM_PROMPT = load_system_prompt("default")
