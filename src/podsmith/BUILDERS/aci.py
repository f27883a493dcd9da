# Copyright 2024 Michael Maillet, Damien Davison, Sacha Davison
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Build, clean and test lifecycle of a single ACI.
"""
import logging
import os
import shutil
from enum import Enum
from pathlib import Path
from typing import List, Optional

from .. import __version__
from ..MODELS.aci_manifest import AciManifest, NameValue
from ..MODELS.image_manifest import Dependency, ImageManifest
from ..MODELS.image_name import ACFullName
from ..PARSERS.manifest_parser import ACI_MANIFEST, ManifestParser
from ..errors import (
    BuildError,
    CatManifestError,
    ContainerRemoveError,
    PodsmithError,
    RunError,
    TestFailedError,
)
from .home import BuildArgs, Home

logger = logging.getLogger(__name__)

PATH_TARGET = "target"
PATH_TESTS = "tests"
PATH_TEST_RESULT = "test-result"
IMAGE_FILE = "image.aci"
MANIFEST_FILE = "manifest.json"
BUILDER_UUID_FILE = "builder.uuid"
TESTER_UUID_FILE = "tester.uuid"

BUILDER_VERSION_ANNOTATION = "podsmith-version"


class AciState(str, Enum):
    UNBUILT = "unbuilt"
    CLEANED = "cleaned"
    BUILT = "built"
    BUILD_FAILED = "build-failed"
    TESTED = "tested"
    TEST_FAILED = "test-failed"


class Aci:
    """
    An ACI source directory and what podsmith does with it.

    The directory holds an aci-manifest.yml (unless the manifest is given,
    as for the apps of a pod) and optionally a tests/ directory. Everything
    produced goes to the target directory.
    """

    def __init__(self, path: str, home: Home, args: Optional[BuildArgs] = None,
                 manifest: Optional[AciManifest] = None, target: Optional[str] = None):
        """
        Initializes the ACI.

        :param path: The ACI source directory.
        :param home: Configuration and rkt client of this run.
        :param args: Build options.
        :param manifest: Manifest to use instead of reading <path>/aci-manifest.yml.
        :param target: Output directory. Defaults to <path>/target, or to
            <targetWorkDir>/<short name> when targetWorkDir is configured.
        """
        self.path = Path(os.path.abspath(path))
        self.home = home
        self.args = args or BuildArgs()
        if manifest is None:
            manifest = ManifestParser().parse_aci(str(self.path / ACI_MANIFEST))
        self.manifest = manifest
        self.pod_name: Optional[ACFullName] = None

        if target:
            self.target = Path(os.path.abspath(target))
        elif home.config.target_work_dir:
            self.target = Path(os.path.abspath(
                os.path.join(home.config.target_work_dir, self.name.short_name)
            ))
        else:
            self.target = self.path / PATH_TARGET
        self.state = AciState.UNBUILT

    @property
    def name(self) -> ACFullName:
        return self.manifest.name_and_version

    @property
    def image_path(self) -> Path:
        return self.target / IMAGE_FILE

    def _describe(self) -> str:
        if self.pod_name:
            return f"{self.name} (pod {self.pod_name})"
        return str(self.name)

    def clean(self) -> None:
        """
        Removes the target directory. A failure to remove it is only logged.
        """
        logger.debug("Cleaning %s", self._describe())

        self.check_compatibility_versions()
        self.check_latest_versions()

        if self.target.exists():
            try:
                shutil.rmtree(self.target)
            except OSError as e:
                logger.warning("Cannot remove directory %s: %s", self.target, e)
        self.state = AciState.CLEANED

    def check_compatibility_versions(self) -> None:
        """
        Warns about dependencies in the rkt store built by another podsmith major version.
        """
        current_major = __version__.split(".")[0]
        for dependency in self.manifest.aci.dependencies:
            try:
                manifest = self.home.rkt.get_manifest(dependency)
            except CatManifestError:
                logger.debug("Dependency %s not in store, skipping version check", dependency)
                continue
            except PodsmithError as e:
                logger.warning("Cannot read manifest of dependency %s: %s", dependency, e)
                continue

            built_with = manifest.annotation(BUILDER_VERSION_ANNOTATION)
            if not built_with:
                logger.warning("Dependency %s was not built with podsmith", dependency)
            elif built_with.split(".")[0] != current_major:
                logger.warning(
                    "Dependency %s was built with podsmith %s, current is %s",
                    dependency, built_with, __version__,
                )

    def check_latest_versions(self) -> None:
        for dependency in self.manifest.aci.dependencies:
            if not dependency.version:
                logger.info("Dependency %s has no version, latest will be used", dependency)

    def to_image_manifest(self) -> ImageManifest:
        """
        The appc manifest of the image to build.
        """
        labels = [NameValue(name="os", value="linux"), NameValue(name="arch", value="amd64")]
        if self.name.version:
            labels.insert(0, NameValue(name="version", value=self.name.version))

        dependencies = []
        for dependency in self.manifest.aci.dependencies:
            dep_labels = []
            if dependency.version:
                dep_labels.append(NameValue(name="version", value=dependency.version))
            dependencies.append(Dependency(image_name=dependency.name, labels=dep_labels))

        annotations = list(self.manifest.aci.annotations)
        annotations.append(NameValue(name=BUILDER_VERSION_ANNOTATION, value=__version__))

        return ImageManifest(
            name=self.name.name,
            labels=labels,
            app=self.manifest.aci.app,
            annotations=annotations,
            dependencies=dependencies,
        )

    def build(self) -> None:
        """
        Cleans, then builds the image into <target>/image.aci.

        :raises BuildError: When any step fails. The ACI is left BUILD_FAILED.
        """
        self._build()
        if self.args.test:
            self.test()

    def _build(self) -> None:
        logger.info("Building %s", self._describe())
        self.clean()
        try:
            self.target.mkdir(parents=True, exist_ok=True)
            self.home.internal_images.import_builder_if_needed(self.manifest)
            (self.target / MANIFEST_FILE).write_text(self.to_image_manifest().to_json())
            self._run_builder()
            if not self.image_path.exists():
                raise BuildError(str(self.name), f"builder did not produce {IMAGE_FILE}")
        except BuildError:
            self.state = AciState.BUILD_FAILED
            raise
        except (PodsmithError, OSError) as e:
            self.state = AciState.BUILD_FAILED
            raise BuildError(str(self.name), str(e)) from e
        self.state = AciState.BUILT
        logger.info("Built %s", self.image_path)

    def _run_builder(self) -> None:
        uuid_file = self.target / BUILDER_UUID_FILE
        args = [
            f"--uuid-file-save={uuid_file}",
            "--net=host",
            f"--volume=aci-home,kind=host,source={self.path},readOnly=true",
            f"--volume=aci-target,kind=host,source={self.target}",
            f"--set-env=ACI_NAME={self.name}",
            str(self.manifest.builder.image),
            "--mount=volume=aci-home,target=/podsmith/aci-home",
            "--mount=volume=aci-target,target=/podsmith/aci-target",
        ]
        try:
            self.home.rkt.run(args)
        finally:
            self._remove_container(uuid_file)

    def _remove_container(self, uuid_file: Path) -> None:
        if self.args.keep_builder or not uuid_file.exists():
            return
        try:
            self.home.rkt.rm_from_file(str(uuid_file))
        except ContainerRemoveError as e:
            logger.warning("Cannot remove container: %s", e)

    def test(self) -> None:
        """
        Runs the tests of tests/ against the built image with the tester image.

        :raises TestFailedError: When the tester reports a failure.
        """
        logger.info("Testing %s", self._describe())
        tests_dir = self.path / PATH_TESTS
        if not tests_dir.is_dir():
            logger.warning("No tests found for %s in %s", self.name, tests_dir)
            self.state = AciState.TESTED
            return

        if not self.image_path.exists():
            self._build()

        try:
            self.home.internal_images.import_tester_if_needed(self.manifest)
            image_hash = self.home.rkt.fetch_insecure(str(self.image_path))
            result_dir = self.target / PATH_TEST_RESULT
            result_dir.mkdir(parents=True, exist_ok=True)
            self._run_tester(tests_dir, result_dir, image_hash)
        except RunError as e:
            self.state = AciState.TEST_FAILED
            raise TestFailedError(str(self.name), self.pod_name) from e
        except PodsmithError:
            self.state = AciState.TEST_FAILED
            raise
        self.state = AciState.TESTED
        logger.info("Tests passed for %s", self._describe())

    def _run_tester(self, tests_dir: Path, result_dir: Path, image_hash: str) -> None:
        uuid_file = self.target / TESTER_UUID_FILE
        env = [f"--set-env=ACI_NAME={self.name}", f"--set-env=ACI_IMAGE={image_hash}"]
        if self.pod_name:
            env.append(f"--set-env=POD_NAME={self.pod_name}")
        args: List[str] = [
            f"--uuid-file-save={uuid_file}",
            "--net=host",
            f"--volume=aci-tests,kind=host,source={tests_dir},readOnly=true",
            f"--volume=aci-result,kind=host,source={result_dir}",
            *env,
            str(self.manifest.test_builder),
            "--mount=volume=aci-tests,target=/podsmith/tests",
            "--mount=volume=aci-result,target=/podsmith/result",
        ]
        try:
            self.home.rkt.run(args)
        finally:
            self._remove_container(uuid_file)
