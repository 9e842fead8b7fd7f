# intelligence/engine.py

import json
import logging
import re
from collections import Counter
from dataclasses import asdict, dataclass, field

from intelligence.templates import load_prompt_template

logger = logging.getLogger(__name__)

AGE_BUCKETS = [
    ("1-5", 1, 5),
    ("6-10", 6, 10),
    ("11-14", 11, 14),
    ("15-18", 15, 18),
    ("19+", 19, None),
]

# Records sent to the model; the statistics always cover the full roster
MAX_PROMPT_RECORDS = 200


@dataclass
class AnalysisResult:
    summary: str
    gender_ratio: str
    age_distribution: str
    anomalies: list[str] = field(default_factory=list)

    def to_dict(self):
        data = asdict(self)
        return {
            "summary": data["summary"],
            "genderRatio": data["gender_ratio"],
            "ageDistribution": data["age_distribution"],
            "anomalies": data["anomalies"],
        }


# -------------------------------------------------
# Deterministic statistics
# -------------------------------------------------

def gender_ratio(records) -> str:
    counts = Counter(r.gender for r in records)
    male = counts.pop("M", 0)
    female = counts.pop("F", 0)
    other = sum(counts.values())

    text = f"M:F = {male}:{female}"
    if other:
        text += f" ({other} unspecified)"
    return text


def age_distribution(records) -> str:
    counts = Counter()
    for r in records:
        if r.age <= 0:
            counts["unknown"] += 1
            continue
        for label, low, high in AGE_BUCKETS:
            if r.age >= low and (high is None or r.age <= high):
                counts[label] += 1
                break

    labels = [label for label, _, _ in AGE_BUCKETS] + ["unknown"]
    return ", ".join(f"{label}: {counts[label]}" for label in labels if counts[label])


def local_anomalies(records) -> list[str]:
    anomalies = []

    missing_phone = sum(1 for r in records if not r.phone)
    if missing_phone:
        anomalies.append(f"{missing_phone} record(s) without a mobile number")

    missing_id = sum(1 for r in records if not r.id)
    if missing_id:
        anomalies.append(f"{missing_id} record(s) without an ID")

    ids = Counter(r.id for r in records if r.id)
    duplicates = sorted(i for i, n in ids.items() if n > 1)
    if duplicates:
        anomalies.append("Duplicate IDs: " + ", ".join(duplicates))

    return anomalies


# -------------------------------------------------
# LLM analysis
# -------------------------------------------------

def build_prompt(records, group=""):
    template = load_prompt_template("roster_analysis")

    stats = "\n".join([
        f"- Total records: {len(records)}",
        f"- Gender ratio: {gender_ratio(records)}",
        f"- Age distribution: {age_distribution(records)}",
    ] + [f"- {a}" for a in local_anomalies(records)])

    lines = [
        f"{r.id} | {r.name} | {r.age} | {r.gender} | {r.admission_status} | {r.remark}"
        for r in records[:MAX_PROMPT_RECORDS]
    ]

    return template.format(
        group=group or "all localities",
        stats=stats,
        records="\n".join(lines),
    )


def parse_analysis(text, records):
    """
    Parse the model's JSON reply. Anything unusable falls back to the
    locally computed figures with the raw reply as the summary.
    """
    fallback = AnalysisResult(
        summary=(text or "").strip(),
        gender_ratio=gender_ratio(records),
        age_distribution=age_distribution(records),
        anomalies=local_anomalies(records),
    )

    cleaned = re.sub(r"^```(?:json)?\s*|\s*```$", "", (text or "").strip())
    try:
        data = json.loads(cleaned)
    except ValueError:
        logger.warning("Analysis reply was not JSON, using local figures")
        return fallback

    if not isinstance(data, dict):
        return fallback

    anomalies = data.get("anomalies")
    if not isinstance(anomalies, list):
        anomalies = fallback.anomalies

    return AnalysisResult(
        summary=str(data.get("summary") or ""),
        gender_ratio=str(data.get("genderRatio") or fallback.gender_ratio),
        age_distribution=str(data.get("ageDistribution") or fallback.age_distribution),
        anomalies=[str(a) for a in anomalies],
    )


def analyze_roster(records, llm_call_fn, group=""):
    """
    Summarize a roster slice.

    - records: the Records to analyze (usually the visible ones)
    - llm_call_fn: function(prompt) -> text
    Returns None for an empty roster, without calling the model.
    """
    records = list(records)
    if not records:
        return None

    prompt = build_prompt(records, group=group)
    output = llm_call_fn(prompt)
    return parse_analysis(output, records)
