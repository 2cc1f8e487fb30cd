"""
Text heuristics deciding whether a query answer should carry a chart, and a
deterministic per-plant summary used when no LLM answer is available.

Rendering is not done here; `decide_chart` only returns the chart settings.
"""

import json
import re
from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Optional

CHART_TYPES = ("bar", "line", "pie", "doughnut")

_NUMBER_RE = re.compile(r"[-+]?\b\d+(?:\.\d+)?\b")
_REQUEST_RE = re.compile(r"(chart|graph|plot|visuali[sz]e|visuali[sz]ation|pie|bar|line|doughnut|donut)")
_DISABLE_PATTERNS = [
    re.compile(r"withou?t\s+graph"),
    re.compile(r"withou?t\s+chart"),
    re.compile(r"w/?o\s+(graph|chart|viz|visual(ization)?)"),
    re.compile(r"no\s+(graph|chart|plot(ting)?|viz|visual(ization)?|image|png)"),
    re.compile(r"(don't|do not|dont)\s+(plot|draw|graph|chart)"),
    re.compile(r"text\s+only"),
    re.compile(r"only\s+text"),
    re.compile(r"no\s+figure"),
]
_PLANT_NAME_RE = re.compile(r"plant[_\s]?name\s*[:\s]+([^\n]+)", re.IGNORECASE)
_PLANT_ID_RE = re.compile(r"plant[_\s]?id\s*[:\s]+([^\n]+)", re.IGNORECASE)
_SPLIT_RE = re.compile(r"\n|,|;|\|")
_JSON_OBJECT_RE = re.compile(r"\{[\s\S]*\}")


@dataclass
class ChartSpec:
    type: str = "bar"
    output: str = "png"
    width: int = 900
    height: int = 500

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class PlantRow:
    plant: str
    accepted: Optional[float] = None
    rejected: Optional[float] = None
    actual_readings: Optional[float] = None


def should_chart_from_context(context: str) -> bool:
    """At least two numeric tokens in the context."""
    return len(_NUMBER_RE.findall(context)) >= 2


def prompt_requests_chart(prompt: str) -> bool:
    return _REQUEST_RE.search(prompt.lower()) is not None


def prompt_disables_chart(prompt: str) -> bool:
    p = prompt.lower()
    return any(pattern.search(p) for pattern in _DISABLE_PATTERNS)


def infer_chart_type_from_prompt(prompt: str) -> str:
    p = prompt.lower()
    if re.search(r"\bpie\b", p):
        return "pie"
    if re.search(r"\b(doughnut|donut)\b", p):
        return "doughnut"
    if re.search(r"\b(line|trend)\b", p):
        return "line"
    return "bar"


def has_multiple_groups(context: str) -> bool:
    """At least two distinct plants named or identified in the context."""
    names = {m.group(1).strip().lower() for m in _PLANT_NAME_RE.finditer(context)}
    names.update(m.group(1).strip().lower() for m in _PLANT_ID_RE.finditer(context))
    return len(names) >= 2


def parse_rows_from_context(context: str) -> List[PlantRow]:
    """Collect accepted/rejected/actual_readings figures per plant from context text."""
    rows: Dict[str, PlantRow] = {}
    current = ""

    def ensure(name: str) -> PlantRow:
        if name not in rows:
            rows[name] = PlantRow(plant=name)
        return rows[name]

    pieces = [s.strip() for s in _SPLIT_RE.split(context)]
    for line in filter(None, pieces):
        m_name = re.search(r"plant[_\s]?name\s*:\s*(.+)", line, re.IGNORECASE)
        if m_name:
            current = m_name.group(1).strip()
            ensure(current)
            continue

        m_id = re.search(r"plant[_\s]?id\s*:\s*(.+)", line, re.IGNORECASE)
        if m_id:
            if not current:
                current = m_id.group(1).strip()
            ensure(current)
            continue

        if not current:
            continue

        for attr, pattern in (
            ("accepted", r"accepted\s*:\s*(-?\d+(?:\.\d+)?)"),
            ("rejected", r"rejected\s*:\s*(-?\d+(?:\.\d+)?)"),
            ("actual_readings", r"actual[_\s]?readings?\s*:\s*(-?\d+(?:\.\d+)?)"),
        ):
            m = re.search(pattern, line, re.IGNORECASE)
            if m:
                setattr(ensure(current), attr, float(m.group(1)))
                break

    return list(rows.values())


def _format_number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def build_fallback_summary(rows: List[PlantRow]) -> str:
    if not rows:
        return "Insufficient context. I need data with per-plant accepted/rejected/actual_readings."

    lines = []
    for row in rows:
        parts = []
        for attr in ("accepted", "rejected", "actual_readings"):
            value = getattr(row, attr)
            if value is not None:
                parts.append(f"{attr}={_format_number(value)}")
        lines.append(f"- {row.plant}: {', '.join(parts)}")
    return "Summary by plant (fallback):\n" + "\n".join(lines)


def extract_json_object(raw: str) -> Optional[Dict[str, Any]]:
    """Parse the outermost {...} block of an LLM reply, or None."""
    match = _JSON_OBJECT_RE.search(raw or "")
    candidate = match.group(0) if match else raw
    try:
        parsed = json.loads(candidate)
    except (TypeError, ValueError):
        return None
    return parsed if isinstance(parsed, dict) else None


def decide_chart(
    prompt: str,
    context: str,
    result_count: int,
    llm_need_chart: bool,
    llm_chart_type: Optional[str] = None,
    chart_requested: Optional[bool] = None,
    chart_options: Optional[Dict[str, Any]] = None
) -> Optional[ChartSpec]:
    """
    Decide whether to attach a chart.

    chart_requested=True forces the attempt, False suppresses it, None lets
    the decision agent (llm_need_chart) choose unless the prompt opts out.
    Even when wanted, a chart needs two or more retrieved chunks, two numeric
    values in the context and at least two plant groups.
    """
    if chart_requested is True:
        wants_chart = True
    elif prompt_disables_chart(prompt):
        wants_chart = False
    else:
        wants_chart = chart_requested is None and llm_need_chart

    if not wants_chart:
        return None
    if result_count < 2 or not should_chart_from_context(context) or not has_multiple_groups(context):
        return None

    options = chart_options or {}
    chart_type = options.get("type") or llm_chart_type or infer_chart_type_from_prompt(prompt)
    return ChartSpec(
        type=chart_type,
        output=options.get("output") or "png",
        width=options.get("width") or 900,
        height=options.get("height") or 500
    )
