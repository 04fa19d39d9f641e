"""
Tests for the installation orchestrator (single install and sync)
"""
import shutil

import pytest
from conftest import FakeInstaller, FakeVersionChecker, make_recipe

from e5.config import E5Config
from e5.manager import Manager, PackageStatus, SkipReason
from e5.platform.detector import Backend, Environment
from e5.platform.installers import RunContext
from e5.recipe import InstallMethod, PackageInfo, Recipe
from e5.repository import LocalRecipeSource, Repository


@pytest.fixture
def calls():
    return []


def build_manager(recipes, environment, console, calls, failing=None, installed=None):
    """Manager wired to fake installers; failing maps backend -> failing package names"""
    failing = failing or {}
    installers = {
        backend: FakeInstaller(backend, failing.get(backend, ()), calls)
        for backend in Backend
    }
    return Manager(
        LocalRecipeSource({r.name: r for r in recipes}),
        environment=environment,
        installers=installers,
        version_checker=FakeVersionChecker(installed),
        console=console,
    )


class TestInstallOne:
    """Single-package install with fallback"""

    def test_fallback_to_script(self, environment, quiet_console, calls):
        recipe = make_recipe('hurl', Backend.APT, Backend.SCRIPT)
        manager = build_manager([recipe], environment, quiet_console, calls,
                                failing={Backend.APT: ['hurl']})
        result = manager.install_one('hurl')

        assert result.status == PackageStatus.SUCCEEDED
        assert result.backend == Backend.SCRIPT
        assert [a.backend for a in result.attempts] == [Backend.APT]
        assert 'apt exploded' in result.attempts[0].error
        assert calls == [(Backend.APT, 'hurl', None), (Backend.SCRIPT, 'hurl', None)]

    def test_first_success_stops(self, environment, quiet_console, calls):
        recipe = make_recipe('jq', Backend.APT, Backend.SCRIPT)
        manager = build_manager([recipe], environment, quiet_console, calls)
        result = manager.install_one('jq')
        assert result.backend == Backend.APT
        assert calls == [(Backend.APT, 'jq', None)]

    def test_no_method_available(self, environment, quiet_console, calls):
        recipe = make_recipe('mas', Backend.HOMEBREW)
        manager = build_manager([recipe], environment, quiet_console, calls)
        result = manager.install_one('mas')

        assert result.status == PackageStatus.FAILED
        assert 'No installation method available for mas' in result.error
        assert calls == []

    def test_all_methods_fail(self, environment, quiet_console, calls):
        recipe = make_recipe('tool', Backend.APT, Backend.CARGO, Backend.SCRIPT)
        manager = build_manager([recipe], environment, quiet_console, calls,
                                failing={b: ['tool'] for b in Backend})
        result = manager.install_one('tool')

        assert result.status == PackageStatus.FAILED
        assert result.error == 'All installation methods failed for tool'
        assert [a.backend for a in result.attempts] == [Backend.APT, Backend.CARGO, Backend.SCRIPT]

    def test_version_reorders_chain(self, quiet_console, calls):
        environment = Environment(available_backends=(Backend.HOMEBREW, Backend.SCRIPT))
        recipe = make_recipe('node', Backend.HOMEBREW, Backend.SCRIPT)
        manager = build_manager([recipe], environment, quiet_console, calls)
        result = manager.install_one('node@18.0.0')
        assert result.backend == Backend.SCRIPT
        assert calls == [(Backend.SCRIPT, 'node', '18.0.0')]

    def test_explicit_version_overrides_spec(self, environment, quiet_console, calls):
        recipe = make_recipe('taplo', Backend.CARGO)
        manager = build_manager([recipe], environment, quiet_console, calls)
        manager.install_one('taplo@0.8.0', required_version='0.9.3')
        assert calls == [(Backend.CARGO, 'taplo', '0.9.3')]

    def test_unknown_recipe(self, environment, quiet_console, calls):
        manager = build_manager([], environment, quiet_console, calls)
        result = manager.install_one('ghost')
        assert result.status == PackageStatus.FAILED
        assert 'ghost' in result.error

    def test_dry_run_reports_first_candidate(self, environment, quiet_console, calls):
        recipe = make_recipe('hurl', Backend.APT, Backend.CARGO, Backend.SCRIPT)
        manager = build_manager([recipe], environment, quiet_console, calls)
        result = manager.install_one('hurl', dry_run=True)

        assert result.status == PackageStatus.PLANNED
        assert result.backend == Backend.APT
        assert result.fallbacks == [Backend.CARGO, Backend.SCRIPT]
        assert calls == []


class TestLocalInstallGate:
    """Already-installed tools are left alone unless ignore_local"""

    def test_up_to_date(self, environment, quiet_console, calls):
        recipe = make_recipe('jq', Backend.APT)
        manager = build_manager([recipe], environment, quiet_console, calls, installed={'jq': '1.7'})
        result = manager.install_one('jq')
        assert result.status == PackageStatus.SKIPPED
        assert result.skip_reason == SkipReason.UP_TO_DATE
        assert calls == []

    def test_version_mismatch_is_not_up_to_date(self, environment, quiet_console, calls):
        recipe = make_recipe('taplo', Backend.CARGO)
        manager = build_manager([recipe], environment, quiet_console, calls,
                                installed={'taplo': '0.8.1'})
        result = manager.install_one('taplo@0.9.3')
        assert result.status == PackageStatus.SKIPPED
        assert result.skip_reason == SkipReason.VERSION_MISMATCH
        assert result.version_check.installed_version == '0.8.1'
        assert calls == []

    def test_ignore_local_reinstalls(self, environment, quiet_console, calls):
        recipe = make_recipe('taplo', Backend.CARGO)
        manager = build_manager([recipe], environment, quiet_console, calls,
                                installed={'taplo': '0.8.1'})
        result = manager.install_one('taplo@0.9.3', ignore_local=True)
        assert result.status == PackageStatus.SUCCEEDED
        assert calls == [(Backend.CARGO, 'taplo', '0.9.3')]
        assert manager.version_checker.checked == []

    def test_dry_run_still_skips_installed(self, environment, quiet_console, calls):
        recipe = make_recipe('jq', Backend.APT)
        manager = build_manager([recipe], environment, quiet_console, calls, installed={'jq': '1.7'})
        assert manager.install_one('jq', dry_run=True).status == PackageStatus.SKIPPED


class TestSync:
    """Batch install with continue-on-error"""

    def test_failure_does_not_stop_batch(self, environment, quiet_console, calls):
        recipes = [make_recipe(n, Backend.APT) for n in ('alpha', 'bravo', 'charlie')]
        manager = build_manager(recipes, environment, quiet_console, calls,
                                failing={Backend.APT: ['bravo']})
        result = manager.sync(['charlie', 'alpha', 'bravo'])

        assert [r.name for r in result.results] == ['alpha', 'bravo', 'charlie']
        assert [r.name for r in result.succeeded] == ['alpha', 'charlie']
        assert [r.name for r in result.failed] == ['bravo']
        assert not result.success
        assert 'apt exploded for bravo' in result.failed[0].attempts[0].error

    def test_unavailable_become_warnings(self, environment, quiet_console, calls):
        recipes = [make_recipe('jq', Backend.APT), make_recipe('mas', Backend.HOMEBREW)]
        manager = build_manager(recipes, environment, quiet_console, calls)
        result = manager.sync(['jq', 'mas', 'ghost'])

        assert [r.name for r in result.results] == ['jq']
        assert len(result.warnings) == 2
        assert any(w.startswith('mas:') for w in result.warnings)
        assert any(w.startswith('ghost:') for w in result.warnings)
        assert result.success

    def test_mixed_outcomes(self, environment, quiet_console, calls):
        recipes = [make_recipe(n, Backend.APT) for n in ('jq', 'hurl', 'taplo')]
        manager = build_manager(recipes, environment, quiet_console, calls, installed={'jq': '1.7'})
        result = manager.sync(['jq', 'hurl', 'taplo@0.9.3'])

        assert [r.name for r in result.skipped] == ['jq']
        assert [r.name for r in result.succeeded] == ['hurl', 'taplo']
        assert (Backend.APT, 'taplo', '0.9.3') in calls

    def test_dry_run_installs_nothing(self, environment, quiet_console, calls):
        recipes = [make_recipe(n, Backend.APT) for n in ('jq', 'hurl')]
        manager = build_manager(recipes, environment, quiet_console, calls)
        result = manager.sync(['jq', 'hurl'], dry_run=True)
        assert len(result.planned) == 2
        assert calls == []
        assert result.success

    def test_empty(self, environment, quiet_console, calls):
        result = build_manager([], environment, quiet_console, calls).sync([])
        assert result.results == [] and result.success


class TestStatus:
    """Read-only status of requirements"""

    def test_status_entries(self, environment, quiet_console, calls):
        recipes = [make_recipe('jq', Backend.APT), make_recipe('taplo', Backend.HOMEBREW)]
        manager = build_manager(recipes, environment, quiet_console, calls, installed={'jq': '1.7'})
        jq, taplo, ghost = manager.status(['jq', 'taplo', 'ghost'])

        assert jq.version_check.installed and jq.candidate[0] == Backend.APT
        assert not taplo.version_check.installed and taplo.candidate is None
        assert ghost.error is not None
        assert calls == []


class TestFromConfig:
    """Manager construction from configuration"""

    def test_from_config(self, quiet_console):
        config = E5Config(repo_url='https://recipes.example.com', fetch_timeout=5,
                          installation_retry_on_failure=3, installation_use_sudo=False)
        manager = Manager.from_config(config, console=quiet_console)
        assert isinstance(manager.source, Repository)
        assert manager.source.timeout == 5
        assert manager.context.retry_on_failure == 3
        assert not manager.context.use_sudo
        assert manager.environment.available_backends[-1] == Backend.SCRIPT


class TestSyncSurvivesBadInput:
    """Malformed recipes and noisy installers stay per-package problems"""

    def test_truncated_recipe_becomes_warning(self, tmp_path, environment, quiet_console, calls):
        (tmp_path / 'index.toml').write_text(
            'version = "1"\n\n'
            '[[recipes]]\nname = "bad"\nfile = "bad.toml"\n\n'
            '[[recipes]]\nname = "good"\nfile = "good.toml"\n'
        )
        (tmp_path / 'bad.toml').write_text('[package]\nname = "bad"\n[install.cargo]\nfeatures = ["a",\n')
        (tmp_path / 'good.toml').write_text('[package]\nname = "good"\n[install.apt]\n')

        manager = build_manager([], environment, quiet_console, calls)
        manager.source = Repository(str(tmp_path))
        result = manager.sync(['bad', 'good'])

        assert [r.name for r in result.succeeded] == ['good']
        assert len(result.warnings) == 1 and result.warnings[0].startswith('bad:')
        assert result.success

    @pytest.mark.skipif(shutil.which('sh') is None, reason="needs a POSIX shell")
    def test_undecodable_installer_output(self, quiet_console):
        bad = Recipe(package=PackageInfo(name='bad'), install_methods={
            Backend.SCRIPT: InstallMethod(script="printf '\\377\\376'; exit 1"),
        })
        good = Recipe(package=PackageInfo(name='good'), install_methods={
            Backend.SCRIPT: InstallMethod(script='true'),
        })
        manager = Manager(
            LocalRecipeSource({'bad': bad, 'good': good}),
            environment=Environment(available_backends=(Backend.SCRIPT,)),
            context=RunContext(retry_delay=0),
            version_checker=FakeVersionChecker(),
            console=quiet_console,
        )
        result = manager.sync(['bad', 'good'])

        assert [r.name for r in result.failed] == ['bad']
        assert [r.name for r in result.succeeded] == ['good']
        assert not result.success
