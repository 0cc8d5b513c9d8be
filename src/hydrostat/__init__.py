"""Real-time hydrostatic equilibrium for floating triangle meshes."""

__version__ = "0.1.0"
