# sim/controls.py
"""
Control-panel side of the simulator.

- `normalize_inputs` merges a partial set of slider/button overrides with the
  previous snapshot into a complete evaluator input tuple.
- `resolve_preset` maps a gravity mode to its canonical base inputs.
- `StateCell` owns the one session snapshot and publishes replacements to
  subscribers (telemetry, flux sensor, visual model).
"""

import logging

from sim.leaf_state import (
    EvaluationInputs,
    GravityMode,
    LightColor,
    SimulationState,
    build_state,
    INITIAL_STATE,
)

logger = logging.getLogger(__name__)

# override key -> EvaluationInputs field
INPUT_FIELDS = {
    'gravity_factor': 'gravity',
    'air_velocity': 'velocity',
    'boundary_layer_thickness': 'base_thickness',
    'ambient_co2': 'co2',
    'ambient_o2': 'o2',
    'ambient_temperature': 'ambient_temp',
    'light_intensity': 'light_intensity',
    'light_color': 'light_color',
}

# mode -> (gravity factor, base thickness mm)
PRESETS = {
    GravityMode.EARTH_1G: (1.0, 0.4),
    GravityMode.MICRO_UG: (0.0, 2.5),
}


def normalize_inputs(prev, overrides):
    """
    Build the full input tuple for one evaluation.

    Fields missing from `overrides` come from `prev`. Numeric values are not
    validated here; the evaluator clamps them.
    """
    unknown = set(overrides) - set(INPUT_FIELDS) - {'gravity_mode'}
    if unknown:
        raise KeyError(f"Not a control input: {sorted(unknown)}")

    values = prev.inputs()._asdict()
    for key, field in INPUT_FIELDS.items():
        if key == 'boundary_layer_thickness':
            continue
        if key in overrides:
            values[field] = overrides[key]

    # The thickness slider is the authoritative base (pre-airflow) thickness.
    # Without it the previous effective thickness becomes the base.
    if 'boundary_layer_thickness' in overrides:
        values['base_thickness'] = overrides['boundary_layer_thickness']
    else:
        values['base_thickness'] = prev.boundary_layer_thickness

    values['light_color'] = LightColor.lookup(values['light_color'])
    return EvaluationInputs(**values)


def apply_update(prev, overrides, light_aware=True):
    """Merge, evaluate, and return the replacement snapshot."""
    inputs = normalize_inputs(prev, overrides)
    mode = overrides.get('gravity_mode', prev.gravity_mode)
    return build_state(mode, inputs, light_aware=light_aware)


def resolve_preset(mode, current, light_aware=True):
    """
    Switch to the canonical inputs of a gravity mode.

    Only gravity factor and base thickness change; velocity, gases,
    temperature and light are carried over from `current` (a snapshot or an
    `EvaluationInputs`).
    """
    mode = GravityMode.parse(mode)
    gravity, base_thickness = PRESETS[mode]
    inputs = current.inputs() if isinstance(current, SimulationState) else EvaluationInputs(*current)
    inputs = inputs._replace(gravity=gravity, base_thickness=base_thickness)
    return build_state(mode, inputs, light_aware=light_aware)


class StateCell:
    """Single-writer holder of the session snapshot."""

    def __init__(self, initial=None, light_aware=True):
        self.light_aware = light_aware
        self._subscribers = []
        if initial is None:
            initial = INITIAL_STATE
        # re-derive so the starting snapshot matches the selected variant
        self._state = build_state(initial.gravity_mode, initial.inputs(), light_aware=light_aware)

    def get(self):
        return self._state

    def subscribe(self, callback):
        """Register `callback(state)`; returns a function that removes it."""
        self._subscribers.append(callback)

        def unsubscribe():
            if callback in self._subscribers:
                self._subscribers.remove(callback)
        return unsubscribe

    def publish(self, state):
        self._state = state
        logger.debug(
            "[state] %s thickness=%.3fmm co2=%.2f o2=%.2f T=%.2fC stress=%.1f eff=%.1f",
            state.gravity_mode.value, state.boundary_layer_thickness, state.co2_flux,
            state.o2_flux, state.temperature, state.stress_level,
            state.photosynthetic_efficiency,
        )
        for callback in list(self._subscribers):
            callback(state)
        return state

    def update(self, **overrides):
        return self.publish(apply_update(self._state, overrides, light_aware=self.light_aware))

    def select_preset(self, mode):
        new_state = resolve_preset(mode, self._state, light_aware=self.light_aware)
        logger.info("[state] preset %s -> gravity=%.1f base thickness=%.1fmm",
                    new_state.gravity_mode.value, new_state.gravity_factor,
                    new_state.base_thickness)
        return self.publish(new_state)
