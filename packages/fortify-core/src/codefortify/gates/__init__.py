"""Quality gates: threshold evaluation and blocking policy."""

from codefortify.formatting import format_number
from codefortify.gates.evaluator import (
    GateEvaluator,
    calculate_summary,
    category_display_name,
    generate_gate_message,
    generate_message,
)
from codefortify.gates.models import BlockingVerdict, GateReport, GateResult, GateSummary

__all__ = [
    "BlockingVerdict",
    "GateEvaluator",
    "GateReport",
    "GateResult",
    "GateSummary",
    "calculate_summary",
    "category_display_name",
    "format_number",
    "generate_gate_message",
    "generate_message",
]
