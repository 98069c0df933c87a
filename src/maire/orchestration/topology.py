"""
Topology Planner -- pure path construction over an ordered model list.

A path is the ordered list of model ids one chain visits. Nothing here calls
a model or touches shared state; same input, same paths.

  chain_path([A,B,C])         -> [A,B,C]                    linear chain
  ring_path(0, [A,B,C])       -> [A,B,C,B,A]                out and back, 2N-1 steps
  ring_path(1, [A,B,C])       -> [B,C,A,C,B]
  double_helix_paths([A,B,C]) -> ([A,B,C,B,A], [C,B,A,B,C]) two opposing strands
  ring_paths([A,B,C])         -> one ring per start offset  n-helix fan-out
  star_arms([A,B], steps=3)   -> [[A,A,A], [B,B,B]]         independent arms
"""

from enum import Enum


class TopologyError(ValueError):
    """Raised when a path cannot be built from the given models."""

    pass


class Topology(str, Enum):
    """Execution topologies accepted in a run request."""

    STANDARD_CHAIN = "standard-chain"
    DOUBLE_HELIX = "double-helix"
    STAR = "star-topology"
    N_HELIX = "n-helix"

    @classmethod
    def names(cls) -> list[str]:
        return [t.value for t in cls]


Path = list[str]

MIN_STAR_STEPS = 3


def _require_models(model_ids: list[str]) -> None:
    if not model_ids:
        raise TopologyError("at least one model is required to build a path")


def chain_path(model_ids: list[str]) -> Path:
    """The linear chain: each model once, in the order given."""
    _require_models(model_ids)
    return list(model_ids)


def ring_path(start_index: int, model_ids: list[str]) -> Path:
    """
    Forward around the ring from start_index, then back to the start.

    The forward leg visits every model once with wraparound. The return leg
    is the forward leg reversed without its first element, so the far end
    (the peak) is not repeated. Result is a palindrome of length 2N-1.
    """
    _require_models(model_ids)
    n = len(model_ids)
    start = start_index % n
    forward = [model_ids[(start + i) % n] for i in range(n)]
    return forward + forward[::-1][1:]


def ring_paths(model_ids: list[str]) -> list[Path]:
    """One ring per start offset, for n-helix fan-out."""
    _require_models(model_ids)
    return [ring_path(offset, model_ids) for offset in range(len(model_ids))]


def double_helix_paths(model_ids: list[str]) -> tuple[Path, Path]:
    """
    Two opposing ring traversals.

    Strand A rings the list from index 0. Strand B rings the reversed list
    from index 0, so it starts at the original list's last model.
    """
    _require_models(model_ids)
    return ring_path(0, model_ids), ring_path(0, list(reversed(model_ids)))


def default_star_steps(model_count: int) -> int:
    return max(MIN_STAR_STEPS, model_count)


def star_arms(model_ids: list[str], steps: int | None = None) -> list[Path]:
    """One arm per model: the same model `steps` times, never crossing models."""
    _require_models(model_ids)
    if steps is None:
        steps = default_star_steps(len(model_ids))
    if steps < 1:
        raise TopologyError(f"star arms need at least one step (got {steps})")
    return [[model_id] * steps for model_id in model_ids]
