"""Plain-text clinical narrative built from FHIR patient data.

The narrative is the input handed to the summarization backend. Sections are
always present; an empty section is rendered as an explicit "none found" line.
"""

from clinical_intel.models.clinical import ConditionEntry, ObservationEntry, PatientRecord

NO_CONDITIONS_LINE = "- No active conditions found."
NO_OBSERVATIONS_LINE = "- No recent observations found."


def _format_quantity(value: object) -> str:
    if isinstance(value, bool):
        return str(value)
    try:
        return f"{float(value):.2f}"
    except (TypeError, ValueError):
        return str(value)


def format_observation(obs: ObservationEntry) -> str:
    if obs.quantity_value is not None:
        line = f"- {obs.label}: {_format_quantity(obs.quantity_value)}"
        if obs.unit:
            line += f" {obs.unit}"
        if obs.effective:
            line += f" on {obs.effective}"
        return line
    if obs.coded_text:
        return f"- {obs.label}: {obs.coded_text}"
    return f"- {obs.label}: no value recorded"


def build_narrative(
    patient: PatientRecord,
    conditions: list[ConditionEntry],
    observations: list[ObservationEntry],
) -> str:
    lines = [f"Patient: {patient.full_name}, born {patient.birth_date or 'unknown'}.", ""]

    lines.append("Active Conditions:")
    if conditions:
        lines.extend(f"- {cond.description}" for cond in conditions)
    else:
        lines.append(NO_CONDITIONS_LINE)

    lines.append("")
    lines.append("Recent Observations:")
    if observations:
        lines.extend(format_observation(obs) for obs in observations)
    else:
        lines.append(NO_OBSERVATIONS_LINE)

    return "\n".join(lines) + "\n"
