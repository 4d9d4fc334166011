from __future__ import annotations

from codenexus.domain.models import AnalysisOutcome

TOTALS_KEY = "_totals"
LEVELS = ("HIGH", "MEDIUM", "LOW", "UNDEFINED")
OTHER_COUNTERS: tuple[tuple[str, str], ...] = (
    ("loc", "Lines of Code (LOC)"),
    ("nosec", "Nosec Tags"),
    ("skipped_tests", "Skipped Tests"),
)


def render_analysis_report(outcome: AnalysisOutcome) -> str:
    """Render static-analysis output as plain text.

    Structured metrics become one section per analyzed file followed by the
    "_totals" section. Languages that only report free-form text get that text.
    """
    title = "Static Analysis Results"
    if outcome.tool:
        title = f"{title} ({outcome.tool})"
    lines = [title]

    if outcome.metrics:
        for name in sorted(key for key in outcome.metrics if key != TOTALS_KEY):
            lines.append("")
            lines.extend(_metrics_section(f"Metrics for {name}", outcome.metrics[name], prefix=""))
        totals = outcome.metrics.get(TOTALS_KEY)
        if totals is not None:
            lines.append("")
            lines.extend(_metrics_section("Overall Totals", totals, prefix="Total "))
    elif outcome.raw_output:
        lines.append(outcome.raw_output.rstrip("\n"))
    else:
        lines.append("No metrics reported.")

    if outcome.raw_findings:
        lines.append("")
        lines.append(f"Findings: {len(outcome.raw_findings)}")
    return "\n".join(lines) + "\n"


def _metrics_section(title: str, counters: dict[str, float], *, prefix: str) -> list[str]:
    lines = [title]
    known: set[str] = set()
    for group, label in (("CONFIDENCE", "Confidence"), ("SEVERITY", "Severity")):
        keys = [f"{group}.{level}" for level in LEVELS]
        known.update(keys)
        if not any(key in counters for key in keys):
            continue
        values = ", ".join(
            f"{level.capitalize()}: {_format_number(counters[key])}"
            for level, key in zip(LEVELS, keys, strict=True)
            if key in counters
        )
        lines.append(f"  {prefix}{label}: {values}")

    others = [
        f"{prefix}{label}: {_format_number(counters[key])}" for key, label in OTHER_COUNTERS if key in counters
    ]
    known.update(key for key, _ in OTHER_COUNTERS)
    # Counters this renderer has no label for are still shown.
    others.extend(f"{key}: {_format_number(value)}" for key, value in sorted(counters.items()) if key not in known)
    if others:
        lines.append("  " + ", ".join(others))
    return lines


def _format_number(value: float) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)
