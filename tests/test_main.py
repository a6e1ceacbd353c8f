# tests/test_main.py
import numpy as np
import pytest

from main import load_session_script, main, run_session, run_sweep
from sim.controls import StateCell
from sim.leaf_state import GravityMode
from sim.leaf_visual import LeafVisualModel
from sim.sensors import FluxSensor


def test_velocity_sweep_thins_layer():
    df = run_sweep(StateCell(), 'air_velocity', np.linspace(0.0, 5.0, 11))
    assert len(df) == 11
    thickness = df['boundary_layer_thickness'].tolist()
    assert thickness == sorted(thickness, reverse=True)
    # every point starts from the initial 0.4 mm base
    assert thickness[0] == pytest.approx(0.4)
    assert thickness[2] == pytest.approx(0.4 / 1.5)
    assert (df['base_thickness'] == 0.4).all()
    assert (df['o2_flux'] == df['co2_flux'] * 0.9).all()


def test_sweep_rows_do_not_depend_on_value_order():
    values = np.linspace(0.0, 5.0, 6)
    up = run_sweep(StateCell(), 'air_velocity', values)
    down = run_sweep(StateCell(), 'air_velocity', values[::-1])
    down = down.iloc[::-1].reset_index(drop=True)
    assert up.equals(down)


def test_light_sweep_keeps_initial_thickness():
    df = run_sweep(StateCell(), 'light_intensity', [0.0, 2.0, 4.0])
    assert df['boundary_layer_thickness'].tolist() == pytest.approx([0.4 / 1.5] * 3)


def test_thickness_sweep_keeps_base_column():
    df = run_sweep(StateCell(), 'boundary_layer_thickness', [0.5, 1.0, 4.0])
    assert df['base_thickness_input'].tolist() == [0.5, 1.0, 4.0]
    assert df['base_thickness'].tolist() == [0.5, 1.0, 4.0]


def test_unsupported_sweep_param():
    with pytest.raises(ValueError):
        run_sweep(StateCell(), 'co2_flux', [1.0])


def test_session_replay():
    events = [
        {'wait': 1.0},
        {'preset': 'MICRO_UG'},
        {'wait': 2.0},
        {'set': {'air_velocity': 4.0}},
        {'wait': 1.0},
    ]
    cell = StateCell()
    sensor = FluxSensor(seed=0)
    visual = LeafVisualModel()
    records = run_session(cell, events, sensor, visual, frame_rate=30)
    assert [r['event'] for r in records] == ['wait', 'preset', 'wait', 'set', 'wait']
    assert records[1]['gravity_mode'] == GravityMode.MICRO_UG.value
    assert records[-1]['t'] == pytest.approx(4.0)
    # 2 Hz over 4 s -> 8 real samples appended after the placeholders
    assert len(sensor.history) == 28
    assert cell.get().air_velocity == 4.0
    assert records[2]['gravity_factor'] == 0.0
    assert 0.0 < records[2]['visual_gravity_factor'] < 1.0


def test_session_rejects_unknown_action():
    with pytest.raises(ValueError):
        run_session(StateCell(), [{'teleport': 1}], FluxSensor(), LeafVisualModel())


def test_session_script_file(tmp_path):
    p = tmp_path / 's.yaml'
    p.write_text("events:\n  - preset: MICRO_UG\n  - wait: 0.5\n")
    assert load_session_script(str(p)) == [{'preset': 'MICRO_UG'}, {'wait': 0.5}]
    with pytest.raises(FileNotFoundError):
        load_session_script(str(tmp_path / 'missing.yaml'))


def test_cli_evaluate(capsys):
    assert main(['evaluate', '--velocity', '5']) == 0
    out = capsys.readouterr().out
    assert 'co2_flux' in out
    assert '160.0000' in out


def test_cli_sweep_writes_csv(tmp_path):
    rc = main(['sweep', '--param', 'ambient_co2', '--start', '200', '--stop', '1500',
               '--n', '5', '--out_dir', str(tmp_path)])
    assert rc == 0
    assert (tmp_path / 'sweep_ambient_co2.csv').exists()


def test_cli_missing_script_returns_error(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    assert main(['session', '--script', str(tmp_path / 'missing.yaml')]) == 2


def test_cli_sweep_plot(tmp_path):
    rc = main(['sweep', '--param', 'boundary_layer_thickness', '--start', '0.2', '--stop', '4.0',
               '--n', '8', '--mode', 'MICRO_UG', '--out_dir', str(tmp_path), '--plot'])
    assert rc == 0
    assert (tmp_path / 'sweep_boundary_layer_thickness.png').exists()


def test_flux_chart_written(tmp_path):
    from viz.plot_utils import plot_flux_history
    sensor = FluxSensor(seed=0)
    cell = StateCell()
    for i in range(5):
        sensor.sample(cell.get(), 10.0 + i * 0.5)
    out = plot_flux_history(sensor.series(), out_path=str(tmp_path / 'flux.png'))
    assert (tmp_path / 'flux.png').exists()
    assert out == str(tmp_path / 'flux.png')


def test_session_set_needs_a_mapping():
    with pytest.raises(ValueError):
        run_session(StateCell(), [{'set': None}], FluxSensor(), LeafVisualModel())
    with pytest.raises(ValueError):
        run_session(StateCell(), [{'set': [1, 2]}], FluxSensor(), LeafVisualModel())


def test_cli_malformed_set_returns_error(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    p = tmp_path / 's.yaml'
    p.write_text("events:\n  - set:\n")
    assert main(['session', '--script', str(p)]) == 2


def test_cli_tolerates_empty_config_sections(tmp_path, capsys):
    p = tmp_path / 'cfg.yaml'
    p.write_text("physics:\nvisual:\noutput:\n")
    assert main(['--config', str(p), 'preset', 'MICRO_UG']) == 0
    assert 'MICRO_UG' in capsys.readouterr().out
    assert main(['--config', str(p), 'evaluate']) == 0
