import os
from pathlib import Path

import pytest

from preload_selector.config import SelectorConfig


def test_defaults(clean_env):
    config = SelectorConfig()

    assert config.library_dir == Path('/local/tensorflow/lib')
    assert config.env_var == 'LD_PRELOAD'
    assert config.disable_gpu is False
    assert config.disable_avx is False
    assert config.disable_avx512 is False
    assert config.nvidia_smi == 'nvidia-smi'
    assert config.gpu_timeout == 10
    assert config.dry_run is False
    assert config.log_level == 'INFO'
    assert config.log_file is None
    assert config.validate() == []


def test_environment_variables(clean_env, monkeypatch):
    monkeypatch.setenv('PRELOAD_LIBRARY_DIR', '/opt/lib')
    monkeypatch.setenv('PRELOAD_DISABLE_GPU', 'true')
    monkeypatch.setenv('PRELOAD_DISABLE_AVX512', 'TRUE')
    monkeypatch.setenv('PRELOAD_GPU_TIMEOUT', '3')
    monkeypatch.setenv('LOG_LEVEL', 'debug')
    monkeypatch.setenv('LOG_FILE', '/tmp/preload.log')

    config = SelectorConfig()

    assert config.library_dir == Path('/opt/lib')
    assert config.disable_gpu is True
    assert config.disable_avx512 is True
    assert config.disable_avx is False
    assert config.gpu_timeout == 3
    assert config.log_level == 'DEBUG'
    assert config.log_file == Path('/tmp/preload.log')


def test_env_file_does_not_override_environment(clean_env, monkeypatch):
    (clean_env / '.env').write_text(
        "# selector settings\n"
        "PRELOAD_LIBRARY_DIR=/from/dotenv\n"
        "PRELOAD_ENV_VAR=LD_AUDIT\n"
        "\n"
    )
    monkeypatch.setenv('PRELOAD_ENV_VAR', 'LD_PRELOAD')

    config = SelectorConfig()

    assert config.library_dir == Path('/from/dotenv')
    assert config.env_var == 'LD_PRELOAD'
    assert os.environ['PRELOAD_LIBRARY_DIR'] == '/from/dotenv'


def test_yaml_config_file(clean_env):
    (clean_env / 'preload.yaml').write_text(
        "library_dir: /opt/tensorflow/lib\n"
        "disable_gpu: true\n"
        "gpu_timeout: 5\n"
        "log_level: warning\n"
    )

    config = SelectorConfig()

    assert config.library_dir == Path('/opt/tensorflow/lib')
    assert config.disable_gpu is True
    assert config.gpu_timeout == 5
    assert config.log_level == 'WARNING'


def test_environment_overrides_yaml(clean_env, monkeypatch):
    path = clean_env / 'custom.yaml'
    path.write_text("library_dir: /from/yaml\ndry_run: true\n")
    monkeypatch.setenv('PRELOAD_CONFIG_FILE', str(path))
    monkeypatch.setenv('PRELOAD_LIBRARY_DIR', '/from/env')

    config = SelectorConfig()

    assert config.library_dir == Path('/from/env')
    assert config.dry_run is True


def test_explicit_config_file(clean_env):
    path = clean_env / 'other.yaml'
    path.write_text("env_var: LD_AUDIT\n")

    assert SelectorConfig(config_file=str(path)).env_var == 'LD_AUDIT'


def test_empty_yaml_file(clean_env):
    (clean_env / 'preload.yaml').write_text("")
    assert SelectorConfig().file_settings == {}


def test_yaml_must_be_a_mapping(clean_env):
    (clean_env / 'preload.yaml').write_text("- library_dir\n- /opt\n")
    with pytest.raises(ValueError):
        SelectorConfig()


def test_validate(clean_env, monkeypatch):
    monkeypatch.setenv('LOG_LEVEL', 'chatty')
    monkeypatch.setenv('PRELOAD_GPU_TIMEOUT', '0')

    errors = SelectorConfig().validate()

    assert len(errors) == 2
    assert any('LOG_LEVEL' in error for error in errors)
    assert any('PRELOAD_GPU_TIMEOUT' in error for error in errors)


def test_validate_empty_env_var(clean_env):
    config = SelectorConfig()
    config.env_var = ''
    assert config.validate() == ["PRELOAD_ENV_VAR must not be empty"]


def test_invalid_yaml(clean_env):
    (clean_env / 'preload.yaml').write_text("library_dir: [unclosed\n")
    with pytest.raises(ValueError, match='invalid YAML'):
        SelectorConfig()


def test_empty_yaml_values_fall_back_to_defaults(clean_env):
    (clean_env / 'preload.yaml').write_text("library_dir:\nlog_file:\ndisable_gpu:\ngpu_timeout:\n")

    config = SelectorConfig()

    assert config.library_dir == Path('/local/tensorflow/lib')
    assert config.log_file is None
    assert config.disable_gpu is False
    assert config.gpu_timeout == 10
