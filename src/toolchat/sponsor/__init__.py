"""Sponsored interstitials: inventory backends and gating."""

from .base import SponsorInventory
from .factory import create_sponsor_inventory
from .gate import Interstitial, SponsorGate
from .in_memory import InMemorySponsorInventory
from .models import AdAvailability, GateDecision, SponsorRecord

__all__ = [
    "AdAvailability",
    "GateDecision",
    "InMemorySponsorInventory",
    "Interstitial",
    "SponsorGate",
    "SponsorInventory",
    "SponsorRecord",
    "create_sponsor_inventory",
]
