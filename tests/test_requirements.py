"""
Tests for package specs and the requirements.toml store
"""
import pytest

from e5.exceptions import RequirementsError
from e5.requirements import (
    PackageSpec,
    Requirements,
    add_package,
    load_requirements,
    parse_package_spec,
    remove_package,
    save_requirements,
)


class TestParsePackageSpec:
    """name / name@version parsing"""

    @pytest.mark.parametrize("raw,name,version", [
        ("taplo@0.9.3", "taplo", "0.9.3"),
        ("hurl", "hurl", None),
        ("@scope/pkg@2.0.0", "@scope/pkg", "2.0.0"),
        ("trailing@", "trailing@", None),
        ("@scope/pkg", "@scope/pkg", None),
    ])
    def test_parse(self, raw, name, version):
        spec = parse_package_spec(raw)
        assert spec.name == name
        assert spec.version == version

    def test_str_roundtrip(self):
        assert str(PackageSpec("taplo", "0.9.3")) == "taplo@0.9.3"
        assert str(PackageSpec("hurl")) == "hurl"


class TestRequirementsFile:
    """Loading and saving requirements.toml"""

    def test_missing_file_is_empty(self, tmp_path):
        assert load_requirements(tmp_path / 'requirements.toml').packages == []

    def test_load(self, tmp_path):
        path = tmp_path / 'requirements.toml'
        path.write_text('packages = ["hurl", "taplo@0.9.3"]\n')
        requirements = load_requirements(path)
        assert requirements.packages == ["hurl", "taplo@0.9.3"]
        assert requirements.specs()[1] == PackageSpec("taplo", "0.9.3")

    def test_invalid_toml(self, tmp_path):
        path = tmp_path / 'requirements.toml'
        path.write_text('packages = [\n')
        with pytest.raises(RequirementsError, match="requirements.toml"):
            load_requirements(path)

    def test_truncated_array(self, tmp_path):
        path = tmp_path / 'requirements.toml'
        path.write_text('packages = ["jq",\n')
        with pytest.raises(RequirementsError):
            load_requirements(path)

    def test_packages_must_be_strings(self, tmp_path):
        path = tmp_path / 'requirements.toml'
        path.write_text('packages = [1, 2]\n')
        with pytest.raises(RequirementsError, match="list of strings"):
            load_requirements(path)

    def test_save_then_load(self, tmp_path):
        path = tmp_path / 'requirements.toml'
        save_requirements(path, Requirements(packages=["jq", "node@18.0.0"]))
        assert load_requirements(path).packages == ["jq", "node@18.0.0"]


class TestEditRequirements:
    """add / remove"""

    def test_add_sorted(self):
        requirements = Requirements(packages=["taplo"])
        assert add_package(requirements, "hurl")
        assert requirements.packages == ["hurl", "taplo"]

    def test_add_replaces_version(self):
        requirements = Requirements(packages=["taplo@0.8.0"])
        assert add_package(requirements, "taplo@0.9.3")
        assert requirements.packages == ["taplo@0.9.3"]

    def test_add_existing_is_noop(self):
        requirements = Requirements(packages=["hurl"])
        assert not add_package(requirements, "hurl")
        assert requirements.packages == ["hurl"]

    def test_remove_by_name(self):
        requirements = Requirements(packages=["hurl", "taplo@0.9.3"])
        assert remove_package(requirements, "taplo")
        assert requirements.packages == ["hurl"]
        assert not requirements.contains("taplo")

    def test_remove_missing(self):
        requirements = Requirements(packages=["hurl"])
        assert not remove_package(requirements, "jq")
