"""
Unit tests for pods.
"""
import json

import pytest
import yaml

from podsmith.BUILDERS.aci import Aci
from podsmith.BUILDERS.pod import Pod
from podsmith.MODELS.runtime_config import HomeConfig
from podsmith.errors import DuplicateAppNameError, ManifestReadError, TestFailedError


def write_pod(directory, apps, **extra):
    directory.mkdir(exist_ok=True)
    content = {"name": "acme:1.0.0", "pod": {"apps": apps}}
    content.update(extra)
    with open(directory / "pod-manifest.yml", 'w') as f:
        yaml.dump(content, f)
    return directory


class TestPodResolution:
    """Tests for pod construction."""

    def test_app_named_from_dependency(self, tmp_path, home):
        """Test naming an app from its first dependency."""
        pod = Pod(str(write_pod(tmp_path / "pod", [{"dependencies": ["example.com/foo"]}])), home)
        assert pod.manifest.pod.apps[0].name == "foo"

    def test_duplicate_names_rejected(self, tmp_path, home):
        """Test that duplicate app names are rejected."""
        directory = write_pod(tmp_path / "pod", [
            {"dependencies": ["example.com/foo"]},
            {"name": "foo", "dependencies": ["example.com/bar"]},
        ])
        with pytest.raises(DuplicateAppNameError) as exc:
            Pod(str(directory), home)
        assert exc.value.name == "foo"

    def test_missing_manifest(self, tmp_path, home):
        """Test a pod directory without manifest."""
        with pytest.raises(ManifestReadError):
            Pod(str(tmp_path), home)

    def test_default_target(self, tmp_path, home):
        """Test the default target directory."""
        pod = Pod(str(write_pod(tmp_path / "pod", [])), home)
        assert pod.target == tmp_path / "pod" / "target"

    def test_target_work_dir(self, tmp_path, make_home):
        """Test target relocation under targetWorkDir."""
        home = make_home(HomeConfig(targetWorkDir=str(tmp_path / "work")))
        pod = Pod(str(write_pod(tmp_path / "pod", [], name="example.com/acme:1.0.0")), home)
        assert pod.target == tmp_path / "work" / "acme"


class TestAciSynthesis:
    """Tests for Pod.to_aci_manifest."""

    def test_identity_and_content(self, tmp_path, home):
        """Test the synthesized ACI name and content."""
        pod = Pod(str(write_pod(tmp_path / "pod", [{
            "name": "web",
            "dependencies": ["example.com/aci-nginx:1.9"],
            "annotations": [{"name": "team", "value": "core"}],
            "app": {"exec": ["/bin/web"]},
        }])), home)
        manifest = pod.to_aci_manifest(pod.manifest.pod.apps[0])
        assert manifest.name_and_version == "acme_web:1.0.0"
        assert manifest.aci.dependencies == ["example.com/aci-nginx:1.9"]
        assert manifest.aci.annotations[0].value == "core"
        assert manifest.aci.app == {"exec": ["/bin/web"]}
        assert manifest.aci.path_whitelist is None
        assert manifest.builder.image.is_empty
        assert manifest.test_builder.is_empty

    def test_pod_builders_inherited(self, tmp_path, home):
        """Test that pod builder and tester are inherited by apps."""
        pod = Pod(str(write_pod(
            tmp_path / "pod", [{"name": "web", "dependencies": ["example.com/x"]}],
            builder={"image": "example.com/builder:3"}, testBuilder="example.com/tester:3",
        )), home)
        manifest = pod.to_aci_manifest(pod.manifest.pod.apps[0])
        assert manifest.builder.image == "example.com/builder:3"
        assert manifest.test_builder == "example.com/tester:3"

    def test_acis_tagged_with_pod(self, tmp_path, home):
        """Test that app ACIs carry the pod name and paths."""
        pod = Pod(str(write_pod(tmp_path / "pod", [{"name": "web", "dependencies": ["example.com/x"]}])), home)
        aci = pod.acis()[0]
        assert aci.pod_name == "acme:1.0.0"
        assert aci.target == pod.target / "web"
        assert aci.path == pod.path / "web"


class TestPodLifecycle:
    """Tests for pod clean, build and test."""

    APPS = [
        {"name": "one", "dependencies": ["example.com/a"]},
        {"name": "two", "dependencies": ["example.com/b"]},
        {"name": "three", "dependencies": ["example.com/c"]},
    ]

    def test_test_stops_at_first_failure(self, tmp_path, home, monkeypatch):
        """Test that the first failing app stops the pod test run."""
        pod = Pod(str(write_pod(tmp_path / "pod", self.APPS)), home)
        tested = []
        failure = TestFailedError("acme_two:1.0.0", "acme:1.0.0")

        def fake_test(aci):
            tested.append(str(aci.name))
            assert aci.pod_name == "acme:1.0.0"
            if aci.name == "acme_two:1.0.0":
                raise failure

        monkeypatch.setattr(Aci, "test", fake_test)
        with pytest.raises(TestFailedError) as exc:
            pod.test()
        assert exc.value is failure
        assert tested == ["acme_one:1.0.0", "acme_two:1.0.0"]

    def test_test_all_pass(self, tmp_path, home, monkeypatch):
        """Test that every app is tested when all pass."""
        pod = Pod(str(write_pod(tmp_path / "pod", self.APPS)), home)
        tested = []
        monkeypatch.setattr(Aci, "test", lambda aci: tested.append(aci.name))
        pod.test()
        assert len(tested) == 3

    def test_build_in_order_and_writes_manifest(self, tmp_path, home, monkeypatch):
        """Test building apps in manifest order."""
        pod = Pod(str(write_pod(tmp_path / "pod", self.APPS)), home)
        built = []
        monkeypatch.setattr(Aci, "build", lambda aci: built.append(aci.name))
        pod.build()
        assert built == ["acme_one:1.0.0", "acme_two:1.0.0", "acme_three:1.0.0"]
        written = json.loads((pod.target / "pod-manifest.json").read_text())
        assert [a["name"] for a in written["pod"]["apps"]] == ["one", "two", "three"]

    def test_clean_removes_pod_target(self, tmp_path, home):
        """Test that clean removes the pod target."""
        pod = Pod(str(write_pod(tmp_path / "pod", self.APPS)), home)
        (pod.target / "one").mkdir(parents=True)
        pod.clean()
        assert not pod.target.exists()
