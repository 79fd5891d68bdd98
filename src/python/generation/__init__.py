"""
===============================================================================
COSMOGEN - Generation Module
===============================================================================
Procedural population of the cosmic hierarchy.

Submodules:
    structure_kind      -- StructureKind flag enumeration
    child_definition    -- ChildDefinition density model
    location            -- CosmicLocation nodes
    location_store      -- LocationStore, in-memory node collection
    context             -- GenerationContext / GenerationResult
    catalog             -- clearance spaces and child definitions per kind
    open_space          -- OpenSpaceFinder, collision-free placement
    configurators       -- per-kind configuration strategies and registry
    hierarchy_generator -- HierarchyGenerator, the weighted placement loop
===============================================================================
"""
