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
Pods: several apps built and tested together from one pod-manifest.yml.
"""
import json
import logging
import os
import shutil
from pathlib import Path
from typing import List, Optional

from ..MODELS.aci_manifest import AciDefinition, AciManifest, BuilderDefinition, RuntimeApp
from ..MODELS.image_name import ACFullName
from ..PARSERS.manifest_parser import POD_MANIFEST, ManifestParser
from ..errors import DuplicateAppNameError
from .aci import PATH_TARGET, Aci
from .home import BuildArgs, Home

logger = logging.getLogger(__name__)

POD_MANIFEST_FILE = "pod-manifest.json"


class Pod:
    """
    A pod directory: pod-manifest.yml and one sub-directory per app.
    """

    def __init__(self, path: str, home: Home, args: Optional[BuildArgs] = None):
        """
        Reads the pod manifest and resolves the target directory.

        :param path: The pod directory.
        :param home: Configuration and rkt client of this run.
        :param args: Build options, passed to every app.
        :raises ManifestReadError: If the manifest cannot be read.
        :raises DuplicateAppNameError: If two apps end up with the same name.
        """
        self.path = Path(os.path.abspath(path))
        self.home = home
        self.args = args or BuildArgs()
        self.manifest = ManifestParser().parse_pod(str(self.path / POD_MANIFEST))
        self._check_app_names()

        if home.config.target_work_dir:
            self.target = Path(os.path.abspath(
                os.path.join(home.config.target_work_dir, self.name.short_name)
            ))
        else:
            self.target = self.path / PATH_TARGET

    @property
    def name(self) -> ACFullName:
        return self.manifest.name

    def _check_app_names(self) -> None:
        seen = set()
        for app in self.manifest.pod.apps:
            if app.name in seen:
                raise DuplicateAppNameError(str(self.name), app.name)
            seen.add(app.name)

    def to_aci_manifest(self, app: RuntimeApp) -> AciManifest:
        """
        The manifest of the ACI built for one app of the pod.

        :param app: Entry of the pod manifest.
        :return: Manifest named <pod name>_<app name>:<pod version>.
        """
        builder = self.manifest.builder or BuilderDefinition()
        return AciManifest(
            name_and_version=ACFullName.of(
                f"{self.name.name}_{app.name}", self.name.version
            ),
            aci=AciDefinition(
                annotations=list(app.annotations),
                app=app.app,
                dependencies=list(app.dependencies),
                path_whitelist=None,
            ),
            builder=builder.model_copy(deep=True),
            test_builder=self.manifest.test_builder or ACFullName(""),
        )

    def acis(self) -> List[Aci]:
        """
        One transient Aci per app, in manifest order.
        """
        acis = []
        for app in self.manifest.pod.apps:
            aci = Aci(
                str(self.path / app.name),
                self.home,
                self.args,
                manifest=self.to_aci_manifest(app),
                target=str(self.target / app.name),
            )
            aci.pod_name = self.name
            acis.append(aci)
        return acis

    def clean(self) -> None:
        logger.info("Cleaning pod %s", self.name)
        for aci in self.acis():
            aci.clean()
        if self.target.exists():
            try:
                shutil.rmtree(self.target)
            except OSError as e:
                logger.warning("Cannot remove directory %s: %s", self.target, e)

    def build(self) -> None:
        """
        Builds every app in order, stopping at the first failure.
        """
        logger.info("Building pod %s", self.name)
        for aci in self.acis():
            aci.build()

        self.target.mkdir(parents=True, exist_ok=True)
        with open(self.target / POD_MANIFEST_FILE, "w") as f:
            json.dump(self.manifest.model_dump(mode="json", by_alias=True, exclude_none=True), f, indent=2)

    def test(self) -> None:
        """
        Tests every app in order. The first failure is raised as is and the
        remaining apps are not tested.
        """
        logger.info("Testing pod %s", self.name)
        for aci in self.acis():
            aci.test()
