# rule_trace.py

from typing import Any, Dict, List

import matplotlib.pyplot as plt

from vehicle_flc.controller import InferenceResult
from vehicle_flc.rule_engine import RuleBase


def trace_rule_firing(rule_base: RuleBase, result: InferenceResult) -> List[Dict[str, Any]]:
    """
    Lists every rule that fired in one inference pass.

    Args:
        rule_base: The resolved rule set the inference ran with.
        result: The inference result.

    Returns:
        One dict per fired rule: id, conclusion, strength and conclusion centroid Z.
    """
    registry = rule_base.registry
    traces = []
    for i, rule in enumerate(rule_base.rules):
        strength = float(result.activations.strengths[i])
        if strength <= 0:
            continue
        out_i, set_i = rule_base.conclusion_of(i)
        traces.append(
            {
                "rule_index": i,
                "id": rule.id,
                "output": rule.conclusion[0],
                "set": rule.conclusion[1],
                "strength": strength,
                "z": float(registry.output_centroids[out_i][set_i]),
            }
        )
    return traces


def plot_rule_contributions(trace_data, title="Rule Contributions", show=True):
    labels = [t["id"] for t in trace_data]
    ws = [t["strength"] for t in trace_data]
    outputs = sorted({t["output"] for t in trace_data})
    palette = plt.rcParams["axes.prop_cycle"].by_key()["color"]
    colors = [palette[outputs.index(t["output"]) % len(palette)] for t in trace_data]

    fig, ax = plt.subplots(figsize=(12, 6))
    bars = ax.bar(range(len(labels)), ws, color=colors, alpha=0.7)
    ax.set_ylabel("Firing Strength")
    ax.set_ylim(0.0, 1.05)
    ax.set_xticks(range(len(labels)))
    ax.set_xticklabels(labels, rotation=45, ha="right")

    # Annotate Z values on top of bars
    for bar, t in zip(bars, trace_data):
        ax.text(
            bar.get_x() + bar.get_width() / 2,
            bar.get_height() + 0.01,
            f"Z={t['z']:.3g}",
            ha="center",
            va="bottom",
            fontsize=8,
        )

    handles = [plt.Rectangle((0, 0), 1, 1, color=palette[i % len(palette)], alpha=0.7) for i in range(len(outputs))]
    ax.legend(handles, outputs, loc="upper right")
    ax.set_title(title)
    plt.tight_layout()
    if show:
        plt.show()
    return fig
