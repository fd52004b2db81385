"""Transform Bounded Context.

Responsible for planar affine transforms of spatial coordinates:
- Value Objects: AffineSpec, DecompositionResult, CoordinateBatch
- Services: apply_affine, decompose_affine, field accessors, affine_object
- Ports: SpatialObjectGateway
"""
