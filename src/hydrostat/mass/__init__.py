"""Mass analysis for floating meshes."""

from .analyze import analyze_mass

__all__ = ["analyze_mass"]
