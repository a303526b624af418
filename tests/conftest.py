import logging

import pytest

CONFIG_ENV_VARS = (
    'PRELOAD_CONFIG_FILE',
    'PRELOAD_LIBRARY_DIR',
    'PRELOAD_ENV_VAR',
    'PRELOAD_DISABLE_GPU',
    'PRELOAD_DISABLE_AVX',
    'PRELOAD_DISABLE_AVX512',
    'PRELOAD_NVIDIA_SMI',
    'PRELOAD_GPU_TIMEOUT',
    'PRELOAD_DRY_RUN',
    'LOG_LEVEL',
    'LOG_FILE',
)


@pytest.fixture(autouse=True)
def reset_logger():
    yield
    logger = logging.getLogger('preload_selector')
    for handler in list(logger.handlers):
        logger.removeHandler(handler)


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Run in an empty directory with no selector settings in the environment"""
    for key in CONFIG_ENV_VARS:
        # setenv first so the original state is recorded and restored
        monkeypatch.setenv(key, '')
        monkeypatch.delenv(key)
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def logger():
    return logging.getLogger('preload_selector.test')
