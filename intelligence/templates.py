# intelligence/templates.py

from pathlib import Path

PROMPTS_DIR = Path(__file__).resolve().parent / "prompts"


def load_prompt_template(report_type: str) -> str:
    """
    Loads a prompt template like:
    intelligence/prompts/roster_analysis.txt
    """
    path = PROMPTS_DIR / f"{report_type}.txt"

    if not path.exists():
        raise FileNotFoundError(f"Missing prompt template: {path}")

    return path.read_text(encoding="utf-8")
