"""
===============================================================================
COSMOGEN - Dynamics Module
===============================================================================
Two-body Kepler orbits: universal-variable propagation, orbit construction
from the four supported parameter modes, and related orbital formulas.

Submodules:
    orbital_mechanics -- Stumpff functions, UniversalVariablePropagator, formulas
    orbit             -- OrbitalParameters and the immutable Orbit
    orbit_assigner    -- OrbitAssigner, puts a body on a requested orbit
===============================================================================
"""
