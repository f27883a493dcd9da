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
Parsers for aci-manifest.yml, pod-manifest.yml and the podsmith configuration file.
"""
import os
from typing import Any, Dict, Optional, Type, TypeVar

import yaml
from pydantic import BaseModel, ValidationError

from ..MODELS.aci_manifest import AciManifest, PodManifest
from ..MODELS.runtime_config import HomeConfig
from ..errors import ConfigError, ManifestReadError

ACI_MANIFEST = "aci-manifest.yml"
POD_MANIFEST = "pod-manifest.yml"
DEFAULT_CONFIG_PATH = os.path.join("~", ".config", "podsmith", "config.yml")

M = TypeVar("M", bound=BaseModel)


def _first_line(error: Exception) -> str:
    lines = str(error).splitlines()
    return lines[0] if lines else type(error).__name__


def _load_yaml(path: str) -> Dict[str, Any]:
    with open(path, "r") as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError("top level must be a mapping")
    return data


class ManifestParser:
    """
    Reads user manifests into their models.
    """

    def _parse(self, path: str, model: Type[M]) -> M:
        try:
            return model.model_validate(_load_yaml(path))
        except (OSError, yaml.YAMLError, ValueError, ValidationError) as e:
            raise ManifestReadError(path, _first_line(e)) from e

    def parse_aci(self, path: str) -> AciManifest:
        """
        Parses an ACI manifest file.

        :param path: Path to the aci-manifest.yml.
        :return: Parsed manifest.
        """
        return self._parse(path, AciManifest)

    def parse_pod(self, path: str) -> PodManifest:
        """
        Parses a pod manifest file and names unnamed apps.

        An app without name takes the short name of its first dependency.

        :param path: Path to the pod-manifest.yml.
        :return: Parsed manifest.
        """
        manifest = self._parse(path, PodManifest)
        for i, app in enumerate(manifest.pod.apps):
            if app.name:
                continue
            if not app.dependencies:
                raise ManifestReadError(path, f"app #{i} has no name and no dependency")
            app.name = app.dependencies[0].short_name
        return manifest


def load_home_config(path: Optional[str] = None,
                     overrides: Optional[Dict[str, Any]] = None) -> HomeConfig:
    """
    Loads the configuration file and applies overrides on the rkt section.

    :param path: Configuration file. When None, the default file is used if it exists.
    :param overrides: Values from the command line, keyed by field name.
    :return: Validated configuration.
    """
    data: Dict[str, Any] = {}
    if path is None:
        default = os.path.expanduser(DEFAULT_CONFIG_PATH)
        if os.path.exists(default):
            path = default
    try:
        if path is not None:
            data = _load_yaml(path)
        config = HomeConfig.model_validate(data)
        overrides = {k: v for k, v in (overrides or {}).items() if v is not None}
        if not overrides:
            return config
        target_work_dir = overrides.pop("target_work_dir", config.target_work_dir)
        rkt = config.rkt.model_dump()
        rkt.update(overrides)
        return HomeConfig(
            rkt=type(config.rkt).model_validate(rkt),
            target_work_dir=target_work_dir,
        )
    except (OSError, yaml.YAMLError, ValueError, ValidationError) as e:
        raise ConfigError("Invalid configuration", path=path, reason=_first_line(e)) from e
