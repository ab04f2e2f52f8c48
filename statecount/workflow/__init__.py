"""Reaction network assembly from model descriptions."""

from .network import Barrier, NetworkSummary, ReactionNetwork

__all__ = [
    "Barrier",
    "NetworkSummary",
    "ReactionNetwork",
]
