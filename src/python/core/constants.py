"""
===============================================================================
COSMOGEN - Physical, Astronomical and Structural Constants
===============================================================================
Central repository for every constant used by the orbit engine and the
hierarchy generator.  SI units throughout (meters, seconds, kilograms,
kelvin, radians).

Structure sizes and densities describe the "typical" member of each cosmic
structure kind.  Densities are expected counts per cubic meter of the parent
region, so `volume * density` is the expected number of children.
===============================================================================
"""

import numpy as np


# =============================================================================
# MATHEMATICAL CONSTANTS
# =============================================================================
PI = np.pi
TWO_PI = 2.0 * np.pi
HALF_PI = 0.5 * np.pi
FOUR_THIRDS_PI = 4.0 * np.pi / 3.0
THREE_QUARTERS_PI = 0.75 * np.pi
DEG2RAD = PI / 180.0
RAD2DEG = 180.0 / PI

# =============================================================================
# FUNDAMENTAL PHYSICAL CONSTANTS
# =============================================================================
SPEED_OF_LIGHT = 299792458.0           # m/s
GRAVITATIONAL_CONSTANT = 6.67430e-11   # m^3 / (kg * s^2)
BOLTZMANN = 1.380649e-23               # J/K
AU = 1.495978707e11                    # Astronomical Unit in meters
LIGHT_YEAR = 9.4607e15                 # m
PARSEC = 3.0857e16                     # m
JULIAN_YEAR = 3.15576e7                # s

# =============================================================================
# REFERENCE BODIES
# =============================================================================
SOLAR_MASS = 1.98847e30                # kg
SOLAR_RADIUS = 6.957e8                 # m
EARTH_MASS = 5.97237e24                # kg
JUPITER_MASS = 1.89819e27              # kg

# Hawking temperature coefficient: T = HAWKING_COEFFICIENT * SOLAR_MASS / m
HAWKING_COEFFICIENT = 6.169e-8         # K

# =============================================================================
# UNIVERSE
# =============================================================================
UNIVERSE_RADIUS = 1.89214e33           # m
UNIVERSE_AMBIENT_TEMPERATURE = 2.73    # K (cosmic microwave background)

# =============================================================================
# STRUCTURE CLEARANCE SPACES
# =============================================================================
# Minimum radius of unobstructed volume each kind needs when placed.
SUPERCLUSTER_SPACE = 9.4607e25         # m
GALAXY_CLUSTER_SPACE = 1.5e24          # m
GALAXY_GROUP_SPACE = 3.0e23            # m
GALAXY_SUBGROUP_SPACE = 5.0e22         # m
GALAXY_SPACE = 2.5e22                  # m
DWARF_GALAXY_SPACE = 2.5e18            # m
GLOBULAR_CLUSTER_SPACE = 2.1e17        # m
NEBULA_SPACE = 5.5e18                  # m
PLANETARY_NEBULA_SPACE = 9.5e15        # m
STAR_SYSTEM_SPACE = 3.5e16             # m
ASTEROID_FIELD_SPACE = 3.15e12         # m
OORT_CLOUD_SPACE = 7.5e15              # m
OORT_CLOUD_INNER_RADIUS = 3.0e15       # m
BLACK_HOLE_SPACE = 60000.0             # m
STAR_SPACE = 1.0e11                    # m
PLANETOID_SPACE = 2.0e9                # m

# =============================================================================
# STRUCTURE MASSES
# =============================================================================
GALAXY_GROUP_MASS = 2.0e44             # kg (~1e14 solar masses)
GALAXY_SUBGROUP_MASS = 3.333e43        # kg
OORT_CLOUD_MASS = 3.0e25               # kg
SUPERMASSIVE_BLACK_HOLE_THRESHOLD = 1.0e33  # kg
STAR_SYSTEM_MASS_MARGIN = 1.001        # stellar mass share of a system

# =============================================================================
# CHILD DENSITIES (expected children per m^3)
# =============================================================================
SUPERCLUSTER_DENSITY = 5.8e-26
GALAXY_CLUSTER_DENSITY = 2.563e-77
SUPERCLUSTER_GROUP_DENSITY = 5.126e-77
CLUSTER_GROUP_DENSITY = 1.415e-72
DWARF_GALAXY_DENSITY = 1.25e-69
SUBGROUP_GLOBULAR_CLUSTER_DENSITY = 3.75e-69
GALAXY_STAR_SYSTEM_DENSITY = 2.75e-73
GLOBULAR_CLUSTER_STAR_SYSTEM_DENSITY = 1.5e-70
HII_REGION_STAR_SYSTEM_DENSITY = 6.0e-50
ASTEROID_FIELD_PLANETOID_DENSITY = 1.3e-30
OORT_CLOUD_PLANETOID_DENSITY = 8.31e-38

# Mean stellar mass used when estimating galaxy mass from star density.
GALAXY_MEAN_STELLAR_MASS = 1.0e30      # kg

# =============================================================================
# NUMERICAL DEFAULTS
# =============================================================================
KEPLER_TOLERANCE = 1.0e-8              # Newton correction ratio threshold
KEPLER_MAX_ITERATIONS = 100            # Newton iteration bound
STUMPFF_SERIES_THRESHOLD = 1.0e-3      # |z| below which series are used
ORBIT_TOLERANCE = 1.0e-8               # degenerate-geometry threshold
PLACEMENT_MAX_ATTEMPTS = 100           # open-space sampling attempts
NEAREST_SPACE_MAX_ATTEMPTS = 1000      # outward spiral search attempts
