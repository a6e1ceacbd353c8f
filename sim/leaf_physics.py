# sim/leaf_physics.py
"""
Leaf boundary-layer physics
---------------------------
Closed-form gas exchange model for a single leaf surface. Maps the control
inputs (gravity, forced airflow, base boundary-layer thickness, ambient gases,
ambient temperature, grow light) to the derived physiological state.

The evaluation order is fixed:
    boundary layer -> resistance -> flux -> temperature -> efficiency -> stress

Units: thickness in mm, velocity in m/s, CO2 in ppm, O2 in %, temperatures
in degrees C. Efficiency and stress are 0..100.
"""

from dataclasses import dataclass, asdict

import numpy as np

# Boundary layer ------------------------------------------------------------
THICKNESS_MIN = 0.2   # mm
THICKNESS_MAX = 4.0   # mm
VELOCITY_THINNING = 0.5

# Diffusion -----------------------------------------------------------------
RESISTANCE_PER_MM = 2.0
RESISTANCE_FLOOR = 0.5
CO2_UPTAKE_COEFF = 0.2
O2_PER_CO2 = 0.9

# Heat ----------------------------------------------------------------------
HEAT_TRAP_PER_MM = 3.0
RADIANT_HEAT_PER_UNIT = 2.5

# Photosynthesis ------------------------------------------------------------
INTENSITY_HALF_SCALE = 2.0
INTENSITY_CAP = 1.2
TEMP_BAND = (15.0, 30.0)
TEMP_PENALTY_PER_DEG = 0.1
CO2_FLUX_REFERENCE = 40.0

# Stress --------------------------------------------------------------------
STRESS_BASE = 10.0
STRESS_THICK_LAYER = 30.0
STRESS_LOW_FLUX = 30.0
STRESS_LOW_EFFICIENCY = 20.0
STRESS_HEAT_PER_DEG = 5.0
THICK_LAYER_THRESHOLD = 1.5   # mm
LOW_FLUX_THRESHOLD = 15.0
HEAT_THRESHOLD = 30.0         # degrees C
LOW_EFFICIENCY_THRESHOLD = 30.0

# Spectral efficiency per grow-light colour
SPECTRAL_EFFICIENCY = {
    'White': 0.9,
    'Red': 1.0,
    'Blue': 1.0,
    'Green': 0.4,
    'Far-Red': 0.2,
}


@dataclass(frozen=True)
class DerivedState:
    """Output of one evaluation. Intermediate terms are kept for telemetry."""
    boundary_layer_thickness: float
    resistance: float
    co2_flux: float
    o2_flux: float
    heat_trap: float
    radiant_heat: float
    temperature: float
    photosynthetic_efficiency: float
    stress_level: float

    def to_dict(self):
        return asdict(self)


def clamp(value, lo, hi):
    return float(np.clip(value, lo, hi))


# Stages --------------------------------------------------------------------
def effective_thickness(base_thickness, velocity):
    """Forced airflow thins the stagnant layer; result is clamped to [0.2, 4.0] mm."""
    # IEEE division: a zero divisor (velocity -2) saturates instead of raising
    with np.errstate(divide='ignore', invalid='ignore'):
        thickness = np.float64(base_thickness) / (1.0 + velocity * VELOCITY_THINNING)
    if np.isnan(thickness):
        return THICKNESS_MIN
    return clamp(thickness, THICKNESS_MIN, THICKNESS_MAX)


def diffusive_resistance(thickness):
    return thickness * RESISTANCE_PER_MM


def co2_influx(ambient_co2, resistance):
    return (ambient_co2 * CO2_UPTAKE_COEFF) / max(resistance, RESISTANCE_FLOOR)


def leaf_temperature(ambient_temp, heat_trap, radiant_heat):
    return ambient_temp + heat_trap + radiant_heat


def temperature_penalty(temperature):
    """1.0 inside the 15..30 C band, losing 0.1 per degree outside, floored at 0."""
    lo, hi = TEMP_BAND
    if temperature > hi:
        return max(0.0, 1.0 - (temperature - hi) * TEMP_PENALTY_PER_DEG)
    if temperature < lo:
        return max(0.0, 1.0 - (lo - temperature) * TEMP_PENALTY_PER_DEG)
    return 1.0


def photosynthetic_efficiency(spectral_eff, light_intensity, temperature, co2_flux):
    # no photoinhibition above the cap
    intensity_factor = min(light_intensity / INTENSITY_HALF_SCALE, INTENSITY_CAP)
    co2_penalty = min(co2_flux / CO2_FLUX_REFERENCE, 1.0)
    efficiency = 100.0 * spectral_eff * intensity_factor * temperature_penalty(temperature) * co2_penalty
    return clamp(efficiency, 0.0, 100.0)


def stress_level(thickness, co2_flux, temperature, efficiency=None):
    """
    Additive stress score. `efficiency` is None for the light-less variant,
    which skips the low-efficiency term.
    """
    stress = STRESS_BASE
    if thickness > THICK_LAYER_THRESHOLD:
        stress += STRESS_THICK_LAYER
    if co2_flux < LOW_FLUX_THRESHOLD:
        stress += STRESS_LOW_FLUX
    if temperature > HEAT_THRESHOLD:
        stress += (temperature - HEAT_THRESHOLD) * STRESS_HEAT_PER_DEG
    if efficiency is not None and efficiency < LOW_EFFICIENCY_THRESHOLD:
        stress += STRESS_LOW_EFFICIENCY
    return clamp(stress, 0.0, 100.0)


def spectral_efficiency(light_color):
    """Accepts a LightColor member or a colour name; unknown names count as White."""
    name = getattr(light_color, 'label', light_color)
    return SPECTRAL_EFFICIENCY.get(name, SPECTRAL_EFFICIENCY['White'])


# Evaluator -----------------------------------------------------------------
def evaluate(gravity, velocity, base_thickness, co2, o2, ambient_temp,
             light_intensity, light_color, light_aware=True):
    """
    Derive the full physiological state from one complete input tuple.

    Pure and total: out-of-range inputs are absorbed by the thickness clamp,
    the resistance floor and the final efficiency/stress clamps. `gravity`
    and `o2` are accepted for a complete input tuple; the closed-form model
    routes gravity through the base thickness chosen by the presets and does
    not use ambient O2.

    With `light_aware=False` the simpler model is used: no radiant heat,
    efficiency reported as 0 and left out of the stress score.
    """
    thickness = effective_thickness(base_thickness, velocity)
    resistance = diffusive_resistance(thickness)
    co2_flux = co2_influx(co2, resistance)
    o2_flux = co2_flux * O2_PER_CO2

    heat_trap = thickness * HEAT_TRAP_PER_MM
    radiant_heat = light_intensity * RADIANT_HEAT_PER_UNIT if light_aware else 0.0
    temperature = leaf_temperature(ambient_temp, heat_trap, radiant_heat)

    if light_aware:
        efficiency = photosynthetic_efficiency(
            spectral_efficiency(light_color), light_intensity, temperature, co2_flux)
        stress = stress_level(thickness, co2_flux, temperature, efficiency)
    else:
        efficiency = 0.0
        stress = stress_level(thickness, co2_flux, temperature)

    return DerivedState(
        boundary_layer_thickness=thickness,
        resistance=resistance,
        co2_flux=co2_flux,
        o2_flux=o2_flux,
        heat_trap=heat_trap,
        radiant_heat=radiant_heat,
        temperature=temperature,
        photosynthetic_efficiency=efficiency,
        stress_level=stress,
    )
