"""
Topology orchestration.

Three layers, leaves first:
  - topology: pure path planning (chain, ring, double helix, star)
  - chain: ChainExecutor drives one path step by step against the ledger
  - orchestrator: runs one or many chains and fans them in with one synthesis call
"""
from .topology import (
    Topology,
    TopologyError,
    chain_path,
    ring_path,
    ring_paths,
    double_helix_paths,
    star_arms,
)
from .chain import ChainExecutor, ChainResult, ChainState, Layer, run_chain
from .orchestrator import Orchestrator, OrchestrationRequest, TopologyResult
