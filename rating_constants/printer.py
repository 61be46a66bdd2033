from typing import Iterable, List

from .store import CandidateStore, ChartState, Contradiction
from .types import format_candidates, format_constant


def format_state(state: ChartState) -> str:
    if state.status == "known":
        return f"{state.chart}: {format_constant(state.constant)}"
    if state.status == "removed":
        return f"{state.chart}: removed"
    text = f"{state.chart}: {format_candidates(state.candidates)}"
    if state.status == "contradiction":
        text += f" [contradiction x{len(state.contradictions)}]"
    return text


def format_contradiction(contradiction: Contradiction) -> str:
    return f"! {contradiction}"


def print_states(states: Iterable[ChartState], *, include_unconstrained: bool = False) -> str:
    lines: List[str] = []
    for state in states:
        if state.status == "unconstrained" and not include_unconstrained:
            continue
        lines.append(format_state(state))
    return "\n".join(lines) + ("\n" if lines else "")


def print_store(store: CandidateStore, *, include_unconstrained: bool = False) -> str:
    out = print_states(store.states(), include_unconstrained=include_unconstrained)
    contradictions = store.contradictions()
    if contradictions:
        out += "Contradictions:\n"
        out += "".join(format_contradiction(c) + "\n" for c in contradictions)
    return out


def summarize(store: CandidateStore) -> str:
    counts = {"known": 0, "narrowed": 0, "unconstrained": 0, "removed": 0, "contradiction": 0}
    for state in store.states():
        counts[state.status] += 1
    return " ".join(f"{key}={value}" for key, value in counts.items())
