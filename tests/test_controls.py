# tests/test_controls.py
import dataclasses

import pytest

from sim.controls import (
    StateCell,
    apply_update,
    normalize_inputs,
    resolve_preset,
)
from sim.leaf_state import INITIAL_STATE, GravityMode, LightColor, build_state


def test_initial_state_is_derived_from_its_inputs():
    s = INITIAL_STATE
    assert s.gravity_mode == GravityMode.EARTH_1G
    assert s.base_thickness == 0.4
    assert s.ambient_co2 == 400.0
    assert s.ambient_o2 == 21.0
    assert s.ambient_temperature == 22.0
    assert s.light_color == LightColor.WHITE
    assert s == build_state(s.gravity_mode, s.inputs())


def test_state_is_immutable():
    with pytest.raises(dataclasses.FrozenInstanceError):
        INITIAL_STATE.co2_flux = 0.0


# -------------------------
# Input normalizer

def test_missing_fields_come_from_previous_state():
    inputs = normalize_inputs(INITIAL_STATE, {'ambient_co2': 900.0})
    assert inputs.co2 == 900.0
    assert inputs.velocity == INITIAL_STATE.air_velocity
    assert inputs.ambient_temp == INITIAL_STATE.ambient_temperature
    assert inputs.light_color == INITIAL_STATE.light_color


def test_explicit_thickness_is_the_new_base():
    inputs = normalize_inputs(INITIAL_STATE, {'boundary_layer_thickness': 3.0})
    assert inputs.base_thickness == 3.0


def test_without_thickness_override_previous_effective_is_the_base():
    # initial velocity 1.0 thins the 0.4 mm base to ~0.267 mm
    assert INITIAL_STATE.boundary_layer_thickness == pytest.approx(0.4 / 1.5)
    s = apply_update(INITIAL_STATE, {'air_velocity': 0.0})
    assert s.base_thickness == INITIAL_STATE.boundary_layer_thickness
    assert s.boundary_layer_thickness == pytest.approx(0.4 / 1.5)


def test_airflow_keeps_thinning_to_the_floor():
    s = apply_update(INITIAL_STATE, {'boundary_layer_thickness': 3.0, 'air_velocity': 1.0})
    assert s.boundary_layer_thickness == pytest.approx(2.0)
    s = apply_update(s, {'ambient_co2': 410.0})
    assert s.boundary_layer_thickness == pytest.approx(2.0 / 1.5)
    for _ in range(20):
        s = apply_update(s, {'ambient_co2': 420.0})
    assert s.boundary_layer_thickness == 0.2


def test_explicit_thickness_overrides_previous_effective():
    thin = apply_update(INITIAL_STATE, {'air_velocity': 4.0})
    s = apply_update(thin, {'boundary_layer_thickness': 1.2, 'air_velocity': 0.0})
    assert s.boundary_layer_thickness == pytest.approx(1.2)


def test_permissive_inputs_are_clamped_downstream():
    s = apply_update(INITIAL_STATE, {'air_velocity': -1.0, 'boundary_layer_thickness': 9.0})
    assert s.air_velocity == -1.0
    assert s.base_thickness == 9.0
    assert s.boundary_layer_thickness == 4.0


def test_unknown_override_is_rejected():
    with pytest.raises(KeyError):
        normalize_inputs(INITIAL_STATE, {'co2_flux': 10.0})
    with pytest.raises(KeyError):
        normalize_inputs(INITIAL_STATE, {'humidity': 50.0})


def test_light_color_accepts_hex_and_name():
    assert normalize_inputs(INITIAL_STATE, {'light_color': '#0000ff'}).light_color == LightColor.BLUE
    assert normalize_inputs(INITIAL_STATE, {'light_color': 'far-red'}).light_color == LightColor.FAR_RED
    assert normalize_inputs(INITIAL_STATE, {'light_color': '#123456'}).light_color == LightColor.WHITE


def test_update_replaces_whole_state():
    s = apply_update(INITIAL_STATE, {'light_intensity': 2.0, 'light_color': 'Red'})
    assert s is not INITIAL_STATE
    # previous effective 0.267 mm is thinned again to the 0.2 mm floor
    assert s.boundary_layer_thickness == 0.2
    assert s.temperature == pytest.approx(22.0 + 0.6 + 5.0)
    assert s.photosynthetic_efficiency == pytest.approx(100.0)
    assert INITIAL_STATE.light_intensity == 0.0


def test_bad_gravity_mode_raises():
    with pytest.raises(ValueError):
        apply_update(INITIAL_STATE, {'gravity_mode': 'MARS'})


# -------------------------
# Preset resolver

def test_earth_preset_resets_base_thickness():
    thick = apply_update(INITIAL_STATE, {'boundary_layer_thickness': 3.7, 'gravity_factor': 0.4})
    s = resolve_preset(GravityMode.EARTH_1G, thick)
    assert s.gravity_factor == 1.0
    assert s.base_thickness == 0.4
    assert s.gravity_mode == GravityMode.EARTH_1G


def test_micro_preset_sets_thick_layer_and_keeps_other_inputs():
    prev = apply_update(INITIAL_STATE, {'air_velocity': 0.0, 'ambient_co2': 400.0,
                                        'light_intensity': 1.0, 'light_color': 'Blue'})
    s = resolve_preset('MICRO_UG', prev)
    assert s.gravity_factor == 0.0
    assert s.base_thickness == 2.5
    assert s.boundary_layer_thickness == pytest.approx(2.5)
    assert s.co2_flux == pytest.approx(16.0)
    assert s.air_velocity == 0.0
    assert s.light_intensity == 1.0
    assert s.light_color == LightColor.BLUE


def test_preset_accepts_bare_inputs():
    s = resolve_preset(GravityMode.MICRO_UG, INITIAL_STATE.inputs())
    assert s.gravity_mode == GravityMode.MICRO_UG
    assert s.base_thickness == 2.5


def test_unknown_preset_raises():
    with pytest.raises(ValueError):
        resolve_preset('LUNAR', INITIAL_STATE)


# -------------------------
# State cell

def test_state_cell_publishes_to_subscribers():
    cell = StateCell()
    seen = []
    unsubscribe = cell.subscribe(seen.append)
    s1 = cell.update(air_velocity=2.0)
    s2 = cell.select_preset(GravityMode.MICRO_UG)
    assert seen == [s1, s2]
    assert cell.get() is s2
    unsubscribe()
    cell.update(ambient_co2=1200.0)
    assert len(seen) == 2


def test_state_cell_light_less_variant():
    cell = StateCell(light_aware=False)
    s = cell.update(air_velocity=0.0, light_intensity=3.0)
    assert s.temperature == pytest.approx(22.0 + 3.0 * 0.4 / 1.5)
    assert s.photosynthetic_efficiency == 0.0
    assert s.stress_level == pytest.approx(10.0)
