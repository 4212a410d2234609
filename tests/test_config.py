import yaml

from purple_reaction.core import config as config_module
from purple_reaction.core.config import ConfigManager, parse_scalar


def test_defaults():
    manager = ConfigManager(search_default_locations=False)
    config = manager.load_config()
    assert config['run'] == {'trial_count': 10, 'min_delay': 2.0, 'max_delay': 5.0, 'seed': None}
    assert config['policy']['false_start_grace_ms'] == 0.0
    assert manager.get_config('display.fullscreen') is True
    assert manager.get_config('display.missing', 'fallback') == 'fallback'


def test_yaml_file_overrides_defaults(tmp_path):
    config_file = tmp_path / "config.yaml"
    config_file.write_text(yaml.safe_dump({'run': {'trial_count': 3}, 'display': {'fullscreen': False}}))
    config = ConfigManager(config_file, search_default_locations=False).load_config()
    assert config['run']['trial_count'] == 3
    assert config['run']['min_delay'] == 2.0
    assert config['display']['fullscreen'] is False


def test_broken_yaml_falls_back_to_defaults(tmp_path):
    config_file = tmp_path / "config.yaml"
    config_file.write_text("run: [unclosed")
    config = ConfigManager(config_file, search_default_locations=False).load_config()
    assert config['run']['trial_count'] == 10


def test_environment_overrides_file(tmp_path, monkeypatch):
    config_file = tmp_path / "config.yaml"
    config_file.write_text(yaml.safe_dump({'run': {'trial_count': 3}}))
    monkeypatch.setenv('PURPLE_REACTION_RUN__TRIAL_COUNT', '7')
    monkeypatch.setenv('PURPLE_REACTION_POLICY__FALSE_START_GRACE_MS', '12.5')
    monkeypatch.setenv('PURPLE_REACTION_DISPLAY__VSYNC', 'false')
    config = ConfigManager(config_file, search_default_locations=False).load_config()
    assert config['run']['trial_count'] == 7
    assert config['policy']['false_start_grace_ms'] == 12.5
    assert config['display']['vsync'] is False


def test_parse_scalar():
    assert parse_scalar('true') is True
    assert parse_scalar('None') is None
    assert parse_scalar('42') == 42
    assert parse_scalar('0.25') == 0.25
    assert parse_scalar('keyboard') == 'keyboard'


def test_set_and_save(tmp_path):
    manager = ConfigManager(search_default_locations=False)
    manager.set_config('run.seed', 9)
    assert manager.get_config('run.seed') == 9
    out = tmp_path / "saved" / "config.yaml"
    manager.save_config(out)
    assert yaml.safe_load(out.read_text())['run']['seed'] == 9


def test_module_level_load_config(tmp_path):
    config_file = tmp_path / "config.yaml"
    config_file.write_text(yaml.safe_dump({'output': {'csv_precision': 3}}))
    config = config_module.load_config(config_file)
    assert config['output']['csv_precision'] == 3
    assert config_module.get_config('output.csv_precision') == 3
    # Process-wide helpers only read; writes go through a ConfigManager
    assert not hasattr(config_module, 'set_config')
    assert not hasattr(config_module, 'save_config')
