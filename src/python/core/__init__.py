"""
===============================================================================
COSMOGEN - Core Module
===============================================================================
Shared foundations: constants, exceptions, configuration loading, the
seeded random source, reference-frame helpers and simple shapes.

Submodules:
    constants  -- physical, structural and numerical constants (SI)
    exceptions -- CosmogenError, ConvergenceError, DegenerateOrbitError
    config     -- YAML configuration loading and typed settings
    randomizer -- Randomizer, the explicit seeded random source
    frames     -- perifocal basis, angle normalization, orientation helpers
    shapes     -- SinglePoint, Sphere, HollowSphere, Ellipsoid
===============================================================================
"""
