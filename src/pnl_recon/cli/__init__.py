"""Command line display components."""

from .recon_display import ReconDisplay

__all__ = ["ReconDisplay"]
