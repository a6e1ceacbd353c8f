# sim/leaf_visual.py
"""
Visual parameters for the leaf renderer.

The renderer draws the leaf from three shader uniforms. This model keeps
those uniforms and eases them toward the current simulation state once per
frame, so abrupt control changes animate smoothly.
"""

from sim.leaf_physics import clamp


def lerp(a, b, t):
    return a + (b - a) * t


def visual_layer(thickness):
    """Map boundary-layer thickness (mm) to gas-layer opacity (0.1 at 0.4 mm, 1.0 from 2.4 mm)."""
    normalized = clamp((thickness - 0.4) / 2.0, 0.0, 1.0)
    return 0.1 + normalized * 0.9


class LeafVisualModel:
    def __init__(self, cfg=None):
        cfg = cfg or {}
        self.gravity_rate = cfg.get('gravity_rate', 0.1)
        self.layer_rate = cfg.get('layer_rate', 0.05)
        self.auto_rotate_threshold = cfg.get('auto_rotate_threshold', 1.0)  # mm

        # uniforms
        self.gravity_factor = 1.0
        self.layer_density = 0.0
        self.air_velocity = 1.0
        self.auto_rotate = False

    def step(self, state):
        """Advance one frame toward `state`. Returns the uniform values."""
        self.gravity_factor = lerp(self.gravity_factor, state.gravity_factor, self.gravity_rate)
        self.layer_density = lerp(self.layer_density, visual_layer(state.boundary_layer_thickness),
                                  self.layer_rate)
        self.air_velocity = state.air_velocity
        self.auto_rotate = state.boundary_layer_thickness > self.auto_rotate_threshold
        return self.uniforms()

    def uniforms(self):
        return {
            'gravity_factor': self.gravity_factor,
            'layer_density': self.layer_density,
            'air_velocity': self.air_velocity,
            'auto_rotate': self.auto_rotate,
        }
