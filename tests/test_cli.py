import pytest

from helpers import FakeCPUDetector, FakeGPUDetector, gpu, host_cpu, library_dir
from preload_selector import cli
from preload_selector.capabilities import CapabilitySet
from preload_selector.cpu_detection import HostCPU
from preload_selector.manager import PreloadManager


@pytest.fixture
def fake_host(monkeypatch, clean_env):
    """Make the CLI build managers that probe a fixed host"""
    monkeypatch.delenv('LD_PRELOAD', raising=False)

    def install(cpu, gpus=()):
        def factory(config):
            gpu_detector = None if config.disable_gpu else FakeGPUDetector(gpus)
            return PreloadManager(config, cpu_detector=FakeCPUDetector(cpu), gpu_detector=gpu_detector)
        monkeypatch.setattr(cli, 'PreloadManager', factory)
    return install


@pytest.fixture
def libs(clean_env):
    return library_dir(
        clean_env / 'lib',
        'libtensorflow_cpu_nehalem.so',
        'libtensorflow_cpu_haswell.so',
        'libtensorflow_gpu_7.5_cpu_haswell.so',
        'libtensorflow_cpu_skylake-avx512.so',
    )


def test_no_command_prints_help(capsys):
    assert cli.main([]) == 1
    assert 'usage:' in capsys.readouterr().out


def test_host(fake_host, libs, capsys):
    fake_host(host_cpu('haswell'), [gpu(0, 7, 5)])

    assert cli.main(['host']) == 0

    out = capsys.readouterr().out
    assert 'Arch:     haswell (avx2_fma)' in out
    assert 'Bundles:  avx2, fma, avx, sse42' in out
    assert 'GPU0:     Test GPU 0 (compute 7.5)' in out


def test_host_without_gpus(fake_host, capsys):
    fake_host(host_cpu('nehalem'), [gpu(0, 7, 5)])

    assert cli.main(['--no-gpu', 'host']) == 0
    assert 'GPUs:     none' in capsys.readouterr().out


def test_list_ranks_compatible_builds(fake_host, libs, capsys):
    fake_host(host_cpu('haswell'), [gpu(0, 8, 0)])

    assert cli.main(['--library-dir', str(libs), 'list']) == 0

    lines = capsys.readouterr().out.splitlines()
    assert lines[0].split() == ['CPU', 'GPU', 'ARTIFACT']
    assert [line.split()[-1] for line in lines[1:]] == [
        str(libs / 'libtensorflow_cpu_haswell.so'),
        str(libs / 'libtensorflow_gpu_7.5_cpu_haswell.so'),
        str(libs / 'libtensorflow_cpu_nehalem.so'),
    ]
    assert lines[2].split()[:2] == ['0', '1']


def test_select_reads_library_dir_from_environment(fake_host, libs, monkeypatch, capsys):
    monkeypatch.setenv('PRELOAD_LIBRARY_DIR', str(libs))
    fake_host(host_cpu('haswell', os_enabled_vector=False))

    assert cli.main(['select']) == 0
    assert capsys.readouterr().out.strip() == str(libs / 'libtensorflow_cpu_nehalem.so')


def test_exec_dry_run(fake_host, libs, capsys):
    fake_host(host_cpu('skylake-avx512'))

    code = cli.main(['--library-dir', str(libs), 'exec', '--dry-run', '--', 'python3', '-c', 'pass'])

    assert code == 0
    expected = libs / 'libtensorflow_cpu_skylake-avx512.so'
    assert capsys.readouterr().out.strip() == f"LD_PRELOAD={expected} python3 -c pass"


def test_exec_without_command(fake_host, libs, capsys):
    fake_host(host_cpu('haswell'))

    assert cli.main(['--library-dir', str(libs), 'exec', '--']) == 2
    assert 'usage: preload-exec exec' in capsys.readouterr().err


def test_unsupported_cpu_exit_code(fake_host, libs):
    fake_host(HostCPU(features=CapabilitySet(), os_enabled_vector=True, os_enabled_wide_vector=True))
    assert cli.main(['--library-dir', str(libs), 'select']) == 3


def test_missing_directory_exit_code(fake_host, clean_env):
    fake_host(host_cpu('haswell'))
    assert cli.main(['--library-dir', str(clean_env / 'missing'), 'select']) == 4


def test_empty_directory_exit_code(fake_host, clean_env):
    fake_host(host_cpu('haswell'))
    empty = library_dir(clean_env / 'empty')
    assert cli.main(['--library-dir', str(empty), 'select']) == 5


def test_no_compatible_artifact_exit_code(fake_host, clean_env):
    fake_host(host_cpu('haswell'))
    libs = library_dir(clean_env / 'lib', 'libtensorflow_cpu_icelake-server.so')
    assert cli.main(['--library-dir', str(libs), 'select']) == 6


def test_invalid_log_level(fake_host, libs, capsys):
    fake_host(host_cpu('haswell'))

    assert cli.main(['--log-level', 'loud', 'host']) == 1
    assert 'Invalid LOG_LEVEL' in capsys.readouterr().err


def test_bad_config_file(clean_env, capsys):
    (clean_env / 'preload.yaml').write_text("- not\n- a mapping\n")

    assert cli.main(['host']) == 1
    assert 'Configuration error' in capsys.readouterr().err


def test_malformed_config_file(clean_env, capsys):
    (clean_env / 'preload.yaml').write_text("library_dir: [unclosed\n")

    assert cli.main(['host']) == 1
    assert 'Configuration error' in capsys.readouterr().err
